"""
taskbridge Schemas

Transcript/task data models and Slack message templates.
"""

from .task_record import (
    TaskStatus,
    ExtractedItem,
    NormalizedTranscript,
    TrackedTask,
)
from .templates import (
    ACTION_APPROVE,
    ACTION_SKIP,
    ACTION_FEEDBACK,
    render_proposal_blocks,
    render_approved_text,
    render_skipped_text,
    render_already_resolved_text,
    render_failure_text,
)

__all__ = [
    "TaskStatus",
    "ExtractedItem",
    "NormalizedTranscript",
    "TrackedTask",
    "ACTION_APPROVE",
    "ACTION_SKIP",
    "ACTION_FEEDBACK",
    "render_proposal_blocks",
    "render_approved_text",
    "render_skipped_text",
    "render_already_resolved_text",
    "render_failure_text",
]
