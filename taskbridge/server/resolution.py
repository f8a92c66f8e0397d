"""
Proposal Resolution

Applies a reviewer's button press to the proposed task:

    Proposed -> Approved           status set to "Done", message replaced
    Proposed -> Skipped            task archived, message replaced
    Proposed -> FeedbackRequested  acknowledged only (no transition defined yet)
    Proposed -> Error              failure notice posted, original message kept

The Slack request has already been acknowledged when resolution starts, so
every outcome, including failures, is reported through the payload's
response_url or the logs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..common.errors import DecodeError, UpstreamError
from ..common.notion_client import NotionClient
from ..common.reference import ReferenceCodec
from ..common.schemas import (
    ACTION_APPROVE,
    ACTION_FEEDBACK,
    ACTION_SKIP,
    TaskStatus,
    render_already_resolved_text,
    render_approved_text,
    render_failure_text,
    render_skipped_text,
)
from ..common.slack_client import SlackClient
from .handlers.base import InteractionEvent
from .ledger import ProposalLedger, ProposalState

logger = logging.getLogger("taskbridge.server.resolution")

# Button ids used by earlier message layouts
ACTION_ALIASES = {
    "accept_task": ACTION_APPROVE,
    "approve_task": ACTION_APPROVE,
    "skip_task": ACTION_SKIP,
    "feedback_task": ACTION_FEEDBACK,
}


@dataclass
class ResolutionOutcome:
    """Terminal result of one interaction event"""
    state: ProposalState
    actor: str
    task_reference: Optional[str]
    detail: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class ProposalResolver:
    """Resolves interaction events against Notion and Slack."""

    def __init__(
        self,
        task_store: NotionClient,
        chat: SlackClient,
        ledger: ProposalLedger,
        codec: Optional[ReferenceCodec] = None,
    ):
        self.task_store = task_store
        self.chat = chat
        self.ledger = ledger
        self.codec = codec or ReferenceCodec()

    async def resolve(self, event: InteractionEvent) -> ResolutionOutcome:
        """
        Resolve one interaction event to exactly one outcome.

        Upstream failures become an Error outcome plus a failure notice; a
        failure to post that notice is logged and does not propagate.
        """
        action = ACTION_ALIASES.get(event.action_id, event.action_id)

        # 1. Decode the task reference
        try:
            task_id = self.codec.require(event.task_reference_url)
        except DecodeError as e:
            logger.warning("Cannot resolve %s from %s: %s", action, event.actor_name, e)
            await self._notify_failure(event, action, "the task link is not a valid Notion reference")
            return ResolutionOutcome(ProposalState.ERROR, event.actor_name, None, str(e))

        entry = self.ledger.get(task_id)
        if entry is not None and entry.state.is_final and action in (ACTION_APPROVE, ACTION_SKIP):
            logger.info("Proposal %s already %s by %s; ignoring %s", task_id, entry.state.value, entry.actor, action)
            await self._reply(event, render_already_resolved_text(entry.state.value, entry.actor or "someone"), replace_original=False)
            return ResolutionOutcome(entry.state, entry.actor or "", task_id, "already resolved")

        # 2. Branch on the action
        if action == ACTION_APPROVE:
            return await self._approve(event, task_id)
        if action == ACTION_SKIP:
            return await self._skip(event, task_id)
        if action == ACTION_FEEDBACK:
            return self._feedback(event, task_id)

        logger.warning("Unknown action %r from %s", event.action_id, event.actor_name)
        await self._notify_failure(event, action, f"unknown action '{event.action_id}'")
        return ResolutionOutcome(ProposalState.ERROR, event.actor_name, task_id, f"unknown action {event.action_id}")

    async def _approve(self, event: InteractionEvent, task_id: str) -> ResolutionOutcome:
        status = TaskStatus.DONE.value
        try:
            await self.task_store.update_status(task_id, status)
        except UpstreamError as e:
            logger.error("Approve failed for %s: %s", task_id, e)
            await self._notify_failure(event, "approve", str(e))
            self.ledger.record_outcome(task_id, ProposalState.ERROR, event.actor_name, event.task_reference_url)
            return ResolutionOutcome(ProposalState.ERROR, event.actor_name, task_id, str(e))

        self.ledger.record_outcome(task_id, ProposalState.APPROVED, event.actor_name, event.task_reference_url)
        logger.info("Task %s approved by %s", task_id, event.actor_name)

        text = render_approved_text(
            task=self.ledger.task_name(task_id),
            actor=event.actor_name,
            status=status,
            url=self.codec.url_for(task_id),
        )
        await self._reply(event, text)
        return ResolutionOutcome(ProposalState.APPROVED, event.actor_name, task_id, status)

    async def _skip(self, event: InteractionEvent, task_id: str) -> ResolutionOutcome:
        try:
            await self.task_store.archive(task_id)
        except UpstreamError as e:
            logger.error("Skip failed for %s: %s", task_id, e)
            await self._notify_failure(event, "skip", str(e))
            self.ledger.record_outcome(task_id, ProposalState.ERROR, event.actor_name, event.task_reference_url)
            return ResolutionOutcome(ProposalState.ERROR, event.actor_name, task_id, str(e))

        self.ledger.record_outcome(task_id, ProposalState.SKIPPED, event.actor_name, event.task_reference_url)
        logger.info("Task %s skipped by %s", task_id, event.actor_name)

        # Archive and reply are not transactional; a failed reply leaves the
        # task archived without a visible confirmation.
        await self._reply(event, render_skipped_text(self.ledger.task_name(task_id), event.actor_name))
        return ResolutionOutcome(ProposalState.SKIPPED, event.actor_name, task_id, "archived")

    def _feedback(self, event: InteractionEvent, task_id: str) -> ResolutionOutcome:
        # TODO: define the feedback transition (collect a comment, reopen the task?);
        # until then the click is acknowledged and recorded only.
        logger.info("Feedback requested on %s by %s (no transition defined)", task_id, event.actor_name)
        self.ledger.record_outcome(task_id, ProposalState.FEEDBACK_REQUESTED, event.actor_name, event.task_reference_url)
        return ResolutionOutcome(ProposalState.FEEDBACK_REQUESTED, event.actor_name, task_id, "no transition defined")

    async def _notify_failure(self, event: InteractionEvent, action: str, error: str) -> None:
        await self._reply(event, render_failure_text(action, error), replace_original=False)

    async def _reply(self, event: InteractionEvent, text: str, replace_original: bool = True) -> bool:
        try:
            await self.chat.respond(event.callback_target, text, replace_original=replace_original)
            return True
        except UpstreamError as e:
            logger.warning("Could not post Slack reply for %s: %s", event.task_reference_url, e)
            return False


async def resolve_in_background(resolver: ProposalResolver, event: InteractionEvent) -> Optional[ResolutionOutcome]:
    """
    Failure boundary for detached resolution.

    Runs after the HTTP response has been sent; nothing can be returned to the
    original caller, so every exception is logged and swallowed here.
    """
    try:
        outcome = await resolver.resolve(event)
    except Exception:
        logger.exception("Unhandled error resolving %s from %s", event.action_id, event.actor_name)
        return None
    logger.info("Resolved %s -> %s", event.action_id, outcome.state.value)
    return outcome
