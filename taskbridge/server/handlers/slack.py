"""
Slack Handler

Handles Slack interactivity requests (button presses on proposal messages)
and converts them to InteractionEvents.
"""

import hmac
import hashlib
import json
import logging
import time
from typing import Optional, Dict, Any
from urllib.parse import parse_qs

from .base import BaseHandler, InteractionEvent

logger = logging.getLogger("taskbridge.server.handlers.slack")


class SlackHandler(BaseHandler):
    """
    Handler for Slack interactivity webhooks.

    Slack posts ``application/x-www-form-urlencoded`` bodies with a single
    ``payload`` field holding JSON. Only ``block_actions`` payloads are
    turned into events; everything else is ignored.
    """

    def __init__(self, signing_secret: str = ""):
        """
        Initialize Slack handler.

        Args:
            signing_secret: Slack signing secret for verification
        """
        super().__init__("slack")
        self._signing_secret = signing_secret

    def decode_body(self, body: bytes) -> Optional[Dict[str, Any]]:
        """
        Decode a request body into a payload dict.

        Accepts the form-encoded ``payload=<json>`` format and plain JSON
        bodies (Events API URL verification).
        """
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
        if text.lstrip().startswith("{"):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return None

        form = parse_qs(text)
        raw_payload = form.get("payload", [None])[0]
        if raw_payload is None:
            return None
        try:
            return json.loads(raw_payload)
        except json.JSONDecodeError:
            return None

    def parse_interaction(self, payload: Dict[str, Any]) -> Optional[InteractionEvent]:
        """
        Parse a block_actions payload into an InteractionEvent.

        Args:
            payload: Decoded Slack interactivity payload

        Returns:
            InteractionEvent or None if the payload carries no action
        """
        if payload.get("type") not in (None, "block_actions"):
            return None

        actions = payload.get("actions") or []
        if not actions:
            return None

        action = actions[0]
        user = payload.get("user") or {}

        return InteractionEvent(
            action_id=action.get("action_id", ""),
            task_reference_url=action.get("value", ""),
            actor_name=user.get("name") or user.get("username") or user.get("id", "unknown"),
            callback_target=payload.get("response_url", ""),
            source="slack",
            raw_data=payload,
        )

    def verify_signature(
        self,
        body: bytes,
        signature: str,
        timestamp: str
    ) -> bool:
        """
        Verify Slack request signature.

        Args:
            body: Raw request body
            signature: X-Slack-Signature header
            timestamp: X-Slack-Request-Timestamp header

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
            if abs(time.time() - ts) > 300:
                return False
        except ValueError:
            return False

        sig_basestring = f"v0:{timestamp}:".encode('utf-8') + body
        expected_sig = "v0=" + hmac.new(
            self._signing_secret.encode('utf-8'),
            sig_basestring,
            hashlib.sha256
        ).hexdigest()

        return hmac.compare_digest(expected_sig, signature)

    def is_url_verification(self, raw_data: Dict[str, Any]) -> bool:
        """Check if request is URL verification"""
        return raw_data.get("type") == "url_verification"

    def get_challenge(self, raw_data: Dict[str, Any]) -> Optional[str]:
        """Get challenge for URL verification"""
        if self.is_url_verification(raw_data):
            return raw_data.get("challenge")
        return None
