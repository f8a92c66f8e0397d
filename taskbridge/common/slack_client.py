"""
Slack Client for proposal messages

Posts interactive proposals to a channel's incoming webhook and
replacement messages to the one-shot response_url Slack attaches to each
interactivity payload.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import SlackConfig
from .errors import UpstreamError
from .schemas import render_proposal_blocks

logger = logging.getLogger("taskbridge.common.slack")


class SlackError(UpstreamError):
    """Error communicating with Slack."""
    pass


class SlackClient:
    """Async client for Slack incoming webhooks and response URLs."""

    def __init__(
        self,
        webhook_url: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: SlackConfig, **kwargs) -> "SlackClient":
        return cls(webhook_url=config.webhook_url, **kwargs)

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, url: str, payload: Dict[str, Any]) -> None:
        client = self._ensure_client()
        try:
            response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise SlackError(f"Slack request failed: {e}") from e
        if response.status_code >= 400:
            raise SlackError(f"Slack returned {response.status_code}: {response.text}")

    async def send_proposal(self, task_name: str, notion_url: str, reasoning: str) -> None:
        """Post an Approve/Skip/Feedback proposal to the configured channel."""
        if not self.is_configured:
            raise SlackError("No Slack webhook URL configured (SLACK_WEBHOOK_URL)")

        blocks = render_proposal_blocks(task_name, notion_url, reasoning)
        await self._post(self.webhook_url, {
            "text": f"New task proposal: {task_name}",
            "blocks": blocks,
        })
        logger.info("Sent Slack proposal for %s", task_name)

    async def respond(
        self,
        response_url: str,
        text: str,
        replace_original: bool = True,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """
        Post to a Slack response_url.

        Args:
            response_url: One-shot callback URL from the interactivity payload
            text: Message text (mrkdwn)
            replace_original: Replace the proposal message instead of
                posting a new one next to it
            blocks: Optional Block Kit blocks
        """
        if not response_url:
            raise SlackError("Interaction payload carried no response_url")

        payload: Dict[str, Any] = {
            "replace_original": replace_original,
            "text": text,
        }
        if blocks:
            payload["blocks"] = blocks
        await self._post(response_url, payload)
