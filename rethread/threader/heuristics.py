"""
Threading Heuristics

Each heuristic looks at a new top-level message plus recent history and
either proposes the thread it belongs to or has no opinion (None).

All three use "most recent" to mean the first match when scanning a history
window in the store's descending-timestamp order.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ..common.message_store import MessageStore
from ..common.schemas import Message, StoredMessage, same_ts

logger = logging.getLogger("rethread.threader.heuristics")

# "re <@U123>", "RE: <@U123> ...", "Re:<@U123|alice> ..."
MENTION_REPLY_RE = re.compile(r"^re\s*:?\s*<@(U[A-Z0-9]+)(?:\|[^>]*)?>", re.IGNORECASE)
CONTINUATION_PREFIX = "..."
GREETING_TRIGGER = "world"
GREETING_TARGET = "hello"


def _latest_other(message: Message, window: Iterable[StoredMessage]) -> Optional[str]:
    """Thread root of the newest window entry that is not ``message`` itself"""
    for entry in window:
        if not same_ts(entry.ts, message.ts):
            return entry.thread_root
    return None


class Heuristic(ABC):
    """
    Base class for thread proposal strategies.

    Subclasses implement ``propose_thread``; they must not mutate the store.
    """

    name = "heuristic"

    def __init__(self, message_store: MessageStore):
        self._store = message_store

    @abstractmethod
    async def propose_thread(self, message: Message) -> Optional[str]:
        """
        Propose a thread for ``message``.

        Args:
            message: Newly created top-level message

        Returns:
            Thread root timestamp, or None for no opinion
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MentionReplyHeuristic(Heuristic):
    """
    "re: @someone ..." replies.

    The mentioned user is parsed out of the text, but the lookup runs over
    the sender's own recent messages in the channel.
    """

    name = "mention_reply"

    @staticmethod
    def match(text: str) -> Optional[str]:
        """Return the mentioned user id if ``text`` is a mention reply"""
        m = MENTION_REPLY_RE.match(text or "")
        return m.group(1) if m else None

    async def propose_thread(self, message: Message) -> Optional[str]:
        target_user = self.match(message.text)
        if target_user is None:
            return None

        logger.debug("Mention reply to %s from %s", target_user, message.user_id)
        window = await self._store.recent_by_author_in_channel(
            message.team_id, message.channel_id, message.user_id
        )
        return _latest_other(message, window)


class ContinuationHeuristic(Heuristic):
    """Messages starting with "..." continue the author's previous message."""

    name = "continuation"

    async def propose_thread(self, message: Message) -> Optional[str]:
        if not (message.text or "").startswith(CONTINUATION_PREFIX):
            return None

        window = await self._store.recent_by_author_in_channel(
            message.team_id, message.channel_id, message.user_id
        )
        return _latest_other(message, window)


class GreetingHeuristic(Heuristic):
    """A bare "world" joins the most recent "hello" in the channel."""

    name = "greeting"

    async def propose_thread(self, message: Message) -> Optional[str]:
        if message.text != GREETING_TRIGGER:
            return None

        window = await self._store.recent_in_channel(message.team_id, message.channel_id)
        for entry in window:
            if entry.text == GREETING_TARGET:
                return entry.thread_root
        return None
