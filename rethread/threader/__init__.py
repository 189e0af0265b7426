"""
Threader - Thread Relocation for Slack

Watches channel messages and moves new top-level messages into the thread
they belong to.

Key Components:
- Heuristics: Structural checks proposing a target thread
- ThreadingEngine: Ordered heuristic chain, first proposal wins
- Relocator: Repost-as-author then delete, using the author's user token
- EventRouter: Maps message lifecycle events onto the store and the engine
- Handlers: Slack webhook verification and parsing

Heuristic priority:
1. "re: @user" replies
2. "..." continuations
3. "hello" / "world" pairs
"""

from .heuristics import (
    Heuristic,
    MentionReplyHeuristic,
    ContinuationHeuristic,
    GreetingHeuristic,
)
from .engine import ThreadingEngine
from .relocator import Relocator, RelocationResult
from .router import EventRouter

__all__ = [
    "Heuristic",
    "MentionReplyHeuristic",
    "ContinuationHeuristic",
    "GreetingHeuristic",
    "ThreadingEngine",
    "Relocator",
    "RelocationResult",
    "EventRouter",
]
