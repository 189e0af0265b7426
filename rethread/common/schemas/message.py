"""
Message Schemas

``Message`` is what the router builds from a Slack event; ``StoredMessage``
is a row read back from the store.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any


def format_ts(value: Any) -> Optional[str]:
    """
    Slack timestamp as text ("seconds.micros").

    Stores may hand timestamps back as numbers; those are re-formatted with
    six fractional digits so they compare equal to the event's own string.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return f"{Decimal(str(value)):.6f}"
    return str(value)


def same_ts(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two timestamps numerically, falling back to text"""
    if a == b:
        return True
    try:
        return Decimal(a) == Decimal(b)
    except (InvalidOperation, TypeError, ValueError):
        return False


@dataclass
class Message:
    """
    A channel message as seen by the threading engine.

    Identified by (team_id, channel_id, ts). ``thread_ts`` is None for
    top-level messages and thread roots.
    """
    team_id: str
    channel_id: str
    ts: str
    user_id: str
    text: str
    thread_ts: Optional[str] = None
    from_bot: bool = False

    @property
    def is_top_level(self) -> bool:
        return not self.thread_ts

    def to_log(self) -> Dict[str, Any]:
        """Compact representation for log lines"""
        return {
            "team": self.team_id,
            "channel": self.channel_id,
            "ts": self.ts,
            "user": self.user_id,
            "thread_ts": self.thread_ts,
        }


@dataclass
class StoredMessage:
    """A row of the ``messages`` table"""
    team_id: str
    channel_id: str
    ts: str
    user_id: Optional[str] = None
    text: str = ""
    thread_ts: Optional[str] = None
    from_bot: bool = False

    @property
    def thread_root(self) -> str:
        """Timestamp of the thread this message lives in (its own if top-level)"""
        return self.thread_ts or self.ts

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "StoredMessage":
        """Build from a store result row (column names as in the table)"""
        return cls(
            team_id=row.get("teamId", ""),
            channel_id=row.get("channelId", ""),
            ts=format_ts(row.get("ts")) or "",
            user_id=row.get("userId"),
            text=row.get("text") or "",
            thread_ts=format_ts(row.get("threadTs")),
            from_bot=bool(row.get("fromBot", False)),
        )
