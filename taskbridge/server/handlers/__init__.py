"""
Interactivity Handlers

Handlers for chat-provider callbacks. Each handler converts provider-specific
payloads to a common InteractionEvent.

Available Handlers:
- SlackHandler: Slack block_actions (proposal buttons)
"""

from .base import BaseHandler, InteractionEvent
from .slack import SlackHandler

__all__ = [
    "BaseHandler",
    "InteractionEvent",
    "SlackHandler",
]
