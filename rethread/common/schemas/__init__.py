"""
Rethread Schemas

Message shapes exchanged between the router, the stores and the heuristics,
plus the installation records written by the OAuth flow.
"""

from .message import Message, StoredMessage, format_ts, same_ts
from .installation import Installation, TeamRef, BotInstallation, UserInstallation

__all__ = [
    "Message",
    "StoredMessage",
    "format_ts",
    "same_ts",
    "Installation",
    "TeamRef",
    "BotInstallation",
    "UserInstallation",
]
