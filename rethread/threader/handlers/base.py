"""
Base Handler

Abstract base class for source-specific webhook handlers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class InboundEvent:
    """
    A webhook event ready for routing.

    ``event`` is the inner event body; ``team_id`` and ``event_id`` come
    from the envelope.
    """
    event: Dict[str, Any]
    team_id: Optional[str] = None
    event_id: Optional[str] = None

    @property
    def subtype(self) -> Optional[str]:
        return self.event.get("subtype")


class BaseHandler(ABC):
    """
    Abstract base class for source handlers.

    Each handler must implement:
    - parse_event: Convert raw payload to an InboundEvent
    - verify_signature: Verify webhook signature (if applicable)
    """

    @abstractmethod
    def parse_event(self, raw_data: Dict[str, Any]) -> Optional[InboundEvent]:
        """
        Parse raw payload into an InboundEvent.

        Args:
            raw_data: Decoded webhook body

        Returns:
            InboundEvent or None if the payload should be ignored
        """
        pass

    @abstractmethod
    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str
    ) -> bool:
        """
        Verify the webhook signature.

        Args:
            body: Raw request body
            signature: Signature from headers
            timestamp: Timestamp from headers

        Returns:
            True if signature is valid
        """
        pass
