"""
Slack Handler

Verifies Slack Events API requests and unwraps ``message`` events.
"""

import hmac
import hashlib
import logging
import time
from typing import Optional, Dict, Any

from .base import BaseHandler, InboundEvent

logger = logging.getLogger("rethread.threader.handlers.slack")

MAX_REQUEST_AGE = 300  # seconds


class SlackHandler(BaseHandler):
    """
    Handler for Slack Events API webhooks.

    Passes through:
    - message events (created, message_changed, message_deleted and any
      other subtype; the router decides what to ignore)

    Ignores:
    - Non-message events
    - Anything that is not an event_callback envelope
    """

    def __init__(self, signing_secret: str = ""):
        """
        Initialize Slack handler.

        Args:
            signing_secret: Slack signing secret for verification
        """
        self._signing_secret = signing_secret

    def parse_event(self, raw_data: Dict[str, Any]) -> Optional[InboundEvent]:
        if raw_data.get("type") != "event_callback":
            return None

        event = raw_data.get("event")
        if not isinstance(event, dict) or event.get("type") != "message":
            return None

        return InboundEvent(
            event=event,
            team_id=raw_data.get("team_id") or event.get("team"),
            event_id=raw_data.get("event_id"),
        )

    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str,
        now: Optional[float] = None,
    ) -> bool:
        """
        Verify Slack request signature.

        Args:
            body: Raw request body
            signature: X-Slack-Signature header
            timestamp: X-Slack-Request-Timestamp header
            now: Current time override (tests)

        Returns:
            True if signature is valid
        """
        if not self._signing_secret:
            # Skip verification if no secret configured
            return True

        if not signature or not timestamp:
            return False

        # Check timestamp is recent (within 5 minutes)
        try:
            ts = int(timestamp)
        except ValueError:
            return False
        if abs((now if now is not None else time.time()) - ts) > MAX_REQUEST_AGE:
            logger.warning("Rejecting stale Slack request (timestamp %s)", timestamp)
            return False

        sig_basestring = b"v0:" + timestamp.encode("utf-8") + b":" + body
        expected_sig = "v0=" + hmac.new(
            self._signing_secret.encode("utf-8"),
            sig_basestring,
            hashlib.sha256
        ).hexdigest()

        return hmac.compare_digest(expected_sig.encode("utf-8"), signature.encode("utf-8"))

    def is_url_verification(self, raw_data: Dict[str, Any]) -> bool:
        """Check if request is URL verification"""
        return raw_data.get("type") == "url_verification"

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[str]:
        """Get challenge for URL verification"""
        if self.is_url_verification(raw_data):
            return raw_data.get("challenge")
        return None
