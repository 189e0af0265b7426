"""
Relocator

Moves a message into a thread: repost into the thread as the author, then
delete the original.

The two Slack calls cannot be made atomic. If the delete fails after the
repost succeeded, the message is visible twice; nothing is rolled back or
retried.
"""

import logging
from enum import Enum
from typing import Callable, Set, Tuple

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ..common.installation_store import InstallationStore
from ..common.schemas import Message

logger = logging.getLogger("rethread.threader.relocator")


class RelocationResult(str, Enum):
    """Outcome of a relocation attempt"""
    RELOCATED = "relocated"
    PERMISSION_DENIED = "permission_denied"
    IN_PROGRESS = "in_progress"
    POST_FAILED = "post_failed"
    DELETE_FAILED = "delete_failed"


class Relocator:
    """
    Executes thread relocations with the author's own user token.

    Messages currently being relocated are tracked in-process so that a
    duplicate delivery of the same event cannot post the message twice.
    """

    def __init__(
        self,
        installation_store: InstallationStore,
        client_factory: Callable[..., AsyncWebClient] = AsyncWebClient,
    ):
        """
        Initialize relocator.

        Args:
            installation_store: Source of per-user credentials
            client_factory: Builds a Slack client for a token (``token=`` kwarg)
        """
        self._installations = installation_store
        self._client_factory = client_factory
        self._in_flight: Set[Tuple[str, str, str]] = set()

    async def relocate(self, message: Message, thread_ts: str) -> RelocationResult:
        """
        Move ``message`` into the thread rooted at ``thread_ts``.

        Args:
            message: Original top-level message
            thread_ts: Target thread root timestamp

        Returns:
            RelocationResult describing how far the relocation got
        """
        credential = await self._installations.get_user(message.team_id, message.user_id)
        if credential is None:
            logger.warning(
                "No permissions for user %s in team %s, leaving %s in place",
                message.user_id, message.team_id, message.ts,
            )
            return RelocationResult.PERMISSION_DENIED

        key = (message.team_id, message.channel_id, message.ts)
        if key in self._in_flight:
            logger.info("Message %s is already being relocated", message.ts)
            return RelocationResult.IN_PROGRESS

        self._in_flight.add(key)
        try:
            logger.info("Moving message %s to thread %s", message.to_log(), thread_ts)
            client = self._client_factory(token=credential.token)

            try:
                await client.chat_postMessage(
                    channel=message.channel_id,
                    thread_ts=thread_ts,
                    text=message.text,
                    as_user=True,
                    username=message.user_id,
                )
            except SlackApiError as e:
                logger.error("Repost of %s failed: %s", message.ts, e.response.get("error"))
                return RelocationResult.POST_FAILED
            except Exception as e:
                logger.error("Repost of %s failed: %s", message.ts, e)
                return RelocationResult.POST_FAILED

            try:
                await client.chat_delete(
                    channel=message.channel_id,
                    ts=message.ts,
                    as_user=True,
                )
            except SlackApiError as e:
                logger.error(
                    "Delete of %s failed after repost, message is duplicated: %s",
                    message.ts, e.response.get("error"),
                )
                return RelocationResult.DELETE_FAILED
            except Exception as e:
                logger.error("Delete of %s failed after repost, message is duplicated: %s", message.ts, e)
                return RelocationResult.DELETE_FAILED

            return RelocationResult.RELOCATED
        finally:
            self._in_flight.discard(key)
