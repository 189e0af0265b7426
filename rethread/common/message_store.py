"""
Message Store

Durable per-channel message history kept in the remote store.

Each call is an independent remote operation; there are no transactions.
Writes log and swallow failures so that event ingestion never blocks on
store availability. Reads return a bounded, most-recent-first window and
degrade to an empty window when the store is unreachable.
"""

import logging
from typing import Any, Dict, List, Optional

from .db_client import DbClient
from .schemas import Message, StoredMessage

logger = logging.getLogger("rethread.common.message_store")

MESSAGES_LOOK_BEHIND = 25

INSERT_SQL = """INSERT INTO messages (teamId, channelId, userId, threadTs, ts, fromBot, text)
VALUES (?, ?, ?, ?, ?, ?, ?)"""

UPDATE_TEXT_SQL = """UPDATE messages SET text = ?
WHERE teamId = ? AND channelId = ? AND ts = ? AND threadTs IS ?"""

DELETE_SQL = """DELETE FROM messages
WHERE teamId = ? AND channelId = ? AND ts = ? AND threadTs IS ?"""

RECENT_IN_CHANNEL_SQL = """SELECT * FROM messages
WHERE teamId = ? AND channelId = ? ORDER BY ts DESC LIMIT ?;"""

RECENT_BY_AUTHOR_SQL = """SELECT * FROM messages
WHERE teamId = ? AND channelId = ? AND userId = ? ORDER BY ts DESC LIMIT ?;"""


def clamp_look_behind(value: int) -> int:
    """Keep a window size within 1..MESSAGES_LOOK_BEHIND"""
    return max(1, min(int(value), MESSAGES_LOOK_BEHIND))


def _rows(result: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Extract result rows, tolerating missing or malformed payloads"""
    if not result or not isinstance(result, dict):
        return []
    rows = result.get("results")
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


class MessageStore:
    """
    Message history backed by the ``messages`` table.

    Windows are ordered by ``ts`` descending and never hold more than
    ``look_behind`` entries, even if the backend ignores ``LIMIT``.
    """

    def __init__(self, db_client: DbClient, look_behind: int = MESSAGES_LOOK_BEHIND):
        """
        Initialize message store.

        Args:
            db_client: Store transport
            look_behind: Maximum size of a history window (at most
                MESSAGES_LOOK_BEHIND)
        """
        self._db = db_client
        self._look_behind = clamp_look_behind(look_behind)

    @property
    def look_behind(self) -> int:
        return self._look_behind

    async def insert(self, message: Message) -> Optional[Dict[str, Any]]:
        """Record a newly created message. Returns the raw result or None."""
        logger.debug("Putting message %s", message.to_log())
        result = await self._db.do_query(
            INSERT_SQL,
            [
                message.team_id,
                message.channel_id,
                message.user_id,
                message.thread_ts,
                message.ts,
                message.from_bot,
                message.text,
            ],
        )
        if result is None:
            logger.warning("Failed to store message %s", message.to_log())
        return result

    async def update_text(
        self,
        team_id: str,
        channel_id: str,
        ts: str,
        thread_ts: Optional[str],
        text: str,
    ) -> Optional[Dict[str, Any]]:
        """Replace the text of a stored message"""
        logger.debug("Updating message %s/%s/%s", team_id, channel_id, ts)
        return await self._db.do_query(
            UPDATE_TEXT_SQL, [text, team_id, channel_id, ts, thread_ts]
        )

    async def delete(
        self,
        team_id: str,
        channel_id: str,
        ts: str,
        thread_ts: Optional[str],
    ) -> Optional[Dict[str, Any]]:
        """Remove a stored message"""
        logger.debug("Deleting message %s/%s/%s", team_id, channel_id, ts)
        return await self._db.do_query(
            DELETE_SQL, [team_id, channel_id, ts, thread_ts]
        )

    async def recent_in_channel(self, team_id: str, channel_id: str) -> List[StoredMessage]:
        """Most recent messages in a channel, newest first"""
        result = await self._db.do_query(
            RECENT_IN_CHANNEL_SQL, [team_id, channel_id, self._look_behind]
        )
        return self._window(result)

    async def recent_by_author_in_channel(
        self,
        team_id: str,
        channel_id: str,
        user_id: str,
    ) -> List[StoredMessage]:
        """Most recent messages by one author in a channel, newest first"""
        result = await self._db.do_query(
            RECENT_BY_AUTHOR_SQL, [team_id, channel_id, user_id, self._look_behind]
        )
        return self._window(result)

    def _window(self, result: Optional[Dict[str, Any]]) -> List[StoredMessage]:
        return [StoredMessage.from_row(row) for row in _rows(result)[: self._look_behind]]
