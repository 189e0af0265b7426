"""
Rethread Common Module

Shared infrastructure: configuration, the store transport and the stores built on it.
"""

from .config import RethreadConfig, load_config
from .db_client import DbClient
from .message_store import MessageStore, MESSAGES_LOOK_BEHIND
from .installation_store import InstallationStore
from .logging_setup import setup_logging

__all__ = [
    "RethreadConfig",
    "load_config",
    "DbClient",
    "MessageStore",
    "MESSAGES_LOOK_BEHIND",
    "InstallationStore",
    "setup_logging",
]
