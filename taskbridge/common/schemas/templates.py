"""
Slack Message Templates

Renders proposal messages and the replacement messages sent once a proposal
is resolved. Block Kit layout: header, mrkdwn section, action buttons.
"""

from typing import Any, Dict, List, Optional


PROPOSAL_HEADER = "New Task Proposal"

# Stable action ids; the Slack interactivity handler dispatches on these.
ACTION_APPROVE = "approve"
ACTION_SKIP = "skip"
ACTION_FEEDBACK = "feedback"

APPROVED_TEMPLATE = "*{task}* was approved by *{actor}*.\nStatus: *{status}*\n<{url}|Open task in Notion>"
SKIPPED_TEMPLATE = "*{task}* was skipped by *{actor}*. The task has been archived."
ALREADY_RESOLVED_TEMPLATE = "This proposal was already {state} by {actor}."
FAILURE_TEMPLATE = "Could not {action} this task: {error}"


def _button(text: str, action_id: str, value: str, style: Optional[str] = None) -> Dict[str, Any]:
    button = {
        "type": "button",
        "text": {"type": "plain_text", "text": text},
        "action_id": action_id,
        "value": value,
    }
    if style:
        button["style"] = style
    return button


def render_proposal_blocks(task_name: str, notion_url: str, reasoning: str) -> List[Dict[str, Any]]:
    """Render the interactive proposal message"""
    return [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": PROPOSAL_HEADER},
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*<{notion_url}|{task_name}>*\n{reasoning}",
            },
        },
        {
            "type": "actions",
            "elements": [
                _button("Approve", ACTION_APPROVE, notion_url, style="primary"),
                _button("Skip", ACTION_SKIP, notion_url, style="danger"),
                _button("Feedback", ACTION_FEEDBACK, notion_url),
            ],
        },
    ]


def render_approved_text(task: str, actor: str, status: str, url: str) -> str:
    return APPROVED_TEMPLATE.format(task=task, actor=actor, status=status, url=url)


def render_skipped_text(task: str, actor: str) -> str:
    return SKIPPED_TEMPLATE.format(task=task, actor=actor)


def render_already_resolved_text(state: str, actor: str) -> str:
    return ALREADY_RESOLVED_TEMPLATE.format(state=state, actor=actor)


def render_failure_text(action: str, error: str) -> str:
    return FAILURE_TEMPLATE.format(action=action, error=error)
