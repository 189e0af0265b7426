"""
Source Handlers

Convert webhook payloads into routable events.

Available Handlers:
- SlackHandler: Slack Events API webhooks
"""

from .base import BaseHandler, InboundEvent
from .slack import SlackHandler

__all__ = [
    "BaseHandler",
    "InboundEvent",
    "SlackHandler",
]
