"""
Event Router

Dispatches Slack ``message`` events to the store and, for new top-level
messages, to the threading engine and relocator.

Dispatch by subtype:
- (none)            → created: store, then maybe relocate
- message_changed   → update stored text if it actually changed
- message_deleted   → remove from store
- anything else     → ignored
"""

import logging
from typing import Any, Dict, Optional

from ..common.message_store import MessageStore
from ..common.schemas import Message
from .engine import ThreadingEngine
from .relocator import Relocator, RelocationResult

logger = logging.getLogger("rethread.threader.router")

MESSAGE_CHANGED = "message_changed"
MESSAGE_DELETED = "message_deleted"


class EventRouter:
    """Entry point for message lifecycle events."""

    def __init__(
        self,
        message_store: MessageStore,
        engine: ThreadingEngine,
        relocator: Relocator,
    ):
        self._store = message_store
        self._engine = engine
        self._relocator = relocator

    @property
    def engine(self) -> ThreadingEngine:
        return self._engine

    async def on_message(
        self,
        event: Dict[str, Any],
        team_id: Optional[str] = None,
    ) -> Optional[RelocationResult]:
        """
        Handle one ``message`` event. Never raises.

        Args:
            event: Inner Slack event
            team_id: Workspace id from the envelope, used when the event lacks one

        Returns:
            RelocationResult if a relocation was attempted, else None
        """
        subtype = event.get("subtype")
        try:
            if subtype is None:
                return await self.on_message_created(event, team_id)
            if subtype == MESSAGE_CHANGED:
                await self.on_message_changed(event, team_id)
            elif subtype == MESSAGE_DELETED:
                await self.on_message_deleted(event, team_id)
            else:
                logger.debug("Ignoring message subtype %s", subtype)
        except Exception as e:
            logger.exception("Failed handling message event (subtype=%s): %s", subtype, e)
        return None

    async def on_message_created(
        self,
        event: Dict[str, Any],
        team_id: Optional[str] = None,
    ) -> Optional[RelocationResult]:
        message = Message(
            team_id=event.get("team") or team_id or "",
            channel_id=event.get("channel", ""),
            ts=event.get("ts", ""),
            user_id=event.get("user", ""),
            text=event.get("text") or "",
            thread_ts=event.get("thread_ts"),
            from_bot=event.get("bot_profile") is not None,
        )

        await self._store.insert(message)

        if not message.is_top_level:
            return None

        target = await self._engine.resolve(message)
        if not target:
            logger.debug("No target thread identified for message %s", message.to_log())
            return None

        return await self._relocator.relocate(message, target)

    async def on_message_changed(
        self,
        event: Dict[str, Any],
        team_id: Optional[str] = None,
    ) -> None:
        current = event.get("message") or {}
        previous = event.get("previous_message") or {}

        if current.get("text") == previous.get("text"):
            return

        await self._store.update_text(
            previous.get("team") or team_id or "",
            event.get("channel", ""),
            current.get("ts", ""),
            current.get("thread_ts"),
            current.get("text") or "",
        )

    async def on_message_deleted(
        self,
        event: Dict[str, Any],
        team_id: Optional[str] = None,
    ) -> None:
        previous = event.get("previous_message") or {}
        await self._store.delete(
            previous.get("team") or team_id or "",
            event.get("channel", ""),
            previous.get("ts") or event.get("deleted_ts", ""),
            previous.get("thread_ts"),
        )
