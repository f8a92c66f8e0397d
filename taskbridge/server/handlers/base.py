"""
Base Handler

Abstract base class for chat-provider interactivity handlers.
Provides a common interface for converting button presses to
InteractionEvents.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class InteractionEvent:
    """
    A reviewer's action on a proposal message.

    This is the standardized format the proposal resolver works with,
    regardless of the chat provider.
    """
    action_id: str
    task_reference_url: str
    actor_name: str
    callback_target: str  # one-shot URL for the asynchronous reply
    source: str = "slack"
    raw_data: Optional[Dict[str, Any]] = None


class BaseHandler(ABC):
    """
    Abstract base class for interactivity handlers.

    Each handler must implement:
    - parse_interaction: Convert a raw payload to an InteractionEvent
    - verify_signature: Verify webhook signature (if applicable)
    """

    def __init__(self, source_name: str):
        """
        Initialize handler.

        Args:
            source_name: Name of the source (e.g., "slack")
        """
        self.source_name = source_name

    @abstractmethod
    def parse_interaction(self, payload: Dict[str, Any]) -> Optional[InteractionEvent]:
        """
        Parse an interactivity payload into an InteractionEvent.

        Args:
            payload: Decoded payload from the provider

        Returns:
            InteractionEvent or None if the payload should be ignored
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
