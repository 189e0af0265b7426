"""
Threading Engine

Runs heuristics in priority order and returns the first proposal.
"""

import logging
from typing import List, Optional, Sequence

from ..common.message_store import MessageStore
from ..common.schemas import Message
from .heuristics import (
    Heuristic,
    MentionReplyHeuristic,
    ContinuationHeuristic,
    GreetingHeuristic,
)

logger = logging.getLogger("rethread.threader.engine")


class ThreadingEngine:
    """
    Ordered chain of heuristics with early exit.

    Priority (default chain):
    1. Explicit reply-to-mention
    2. Implicit "..." continuation
    3. hello/world pairing

    Heuristics are awaited one at a time. A heuristic that raises is logged
    and counts as having no opinion.
    """

    def __init__(self, heuristics: Sequence[Heuristic]):
        self._heuristics: List[Heuristic] = list(heuristics)

    @classmethod
    def default(cls, message_store: MessageStore) -> "ThreadingEngine":
        """Build the standard chain over ``message_store``"""
        return cls([
            MentionReplyHeuristic(message_store),
            ContinuationHeuristic(message_store),
            GreetingHeuristic(message_store),
        ])

    @property
    def heuristics(self) -> List[Heuristic]:
        return list(self._heuristics)

    async def resolve(self, message: Message) -> Optional[str]:
        """
        Find the thread ``message`` belongs to.

        Args:
            message: Newly created top-level message

        Returns:
            Thread root timestamp from the first heuristic with an opinion,
            or None
        """
        for heuristic in self._heuristics:
            try:
                target = await heuristic.propose_thread(message)
            except Exception as e:
                logger.error("Heuristic %s failed on %s: %s", heuristic.name, message.ts, e)
                continue

            if target:
                logger.debug("Heuristic %s proposed thread %s for %s", heuristic.name, target, message.ts)
                return target
        return None
