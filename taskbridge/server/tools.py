"""
Task Tools

The fixed tool set exposed to the agent runtime:

- search_notion: find a database/project id
- create_proposed_task: create a task page
- update_task_status: change a task's status
- delete_task: archive a task
- send_slack_proposal: announce a task for review with Approve/Skip/Feedback

Tool results are plain text, e.g. ``Created Task: <url>``; callers read the
task URL back from that line.
"""

import json
import logging
import re
from typing import Optional

from mcp.types import ToolAnnotations

from ..common.notion_client import NotionClient
from ..common.reference import ReferenceCodec
from ..common.slack_client import SlackClient
from .ledger import ProposalLedger
from .registry import ToolArguments, ToolDescriptor, ToolRegistry, ToolResult

logger = logging.getLogger("taskbridge.server.tools")

CREATED_TASK_PREFIX = "Created Task: "
_CREATED_TASK_RE = re.compile(r"Created Task: (\S+)")


def parse_created_task_url(text: str) -> Optional[str]:
    """Read the task URL back out of a create_proposed_task result."""
    match = _CREATED_TASK_RE.search(text or "")
    return match.group(1) if match else None


# =============================================================================
# Argument records
# =============================================================================

class SearchArgs(ToolArguments):
    query: str


class CreateTaskArgs(ToolArguments):
    database_id: str
    title: str
    description: Optional[str] = None
    project_id: Optional[str] = None
    status: str = "Not Started"


class UpdateTaskArgs(ToolArguments):
    task_id: str
    status: str


class DeleteTaskArgs(ToolArguments):
    task_id: str


class SendProposalArgs(ToolArguments):
    task_name: str
    notion_url: str
    reasoning: str


# =============================================================================
# Handlers
# =============================================================================

class TaskTools:
    """Tool handlers bound to the Notion and Slack clients."""

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

    async def search_notion(self, args: SearchArgs) -> ToolResult:
        logger.info("Searching Notion for: %s", args.query)
        results = await self.task_store.search(args.query)
        return ToolResult.from_text(json.dumps(results, indent=2))

    async def create_proposed_task(self, args: CreateTaskArgs) -> ToolResult:
        logger.info("Creating task: %s [status: %s]", args.title, args.status)
        task = await self.task_store.create_task(
            database_id=args.database_id,
            title=args.title,
            status=args.status,
            description=args.description or "",
            project_id=args.project_id,
        )
        return ToolResult.from_text(f"{CREATED_TASK_PREFIX}{task.url}")

    async def update_task_status(self, args: UpdateTaskArgs) -> ToolResult:
        task_id = self.codec.resolve(args.task_id)
        await self.task_store.update_status(task_id, args.status)
        return ToolResult.from_text(f"Updated Task {task_id}: status={args.status}")

    async def delete_task(self, args: DeleteTaskArgs) -> ToolResult:
        task_id = self.codec.resolve(args.task_id)
        await self.task_store.archive(task_id)
        return ToolResult.from_text(f"Archived Task {task_id}")

    async def send_slack_proposal(self, args: SendProposalArgs) -> ToolResult:
        logger.info("Sending Slack proposal for: %s", args.task_name)
        await self.chat.send_proposal(args.task_name, args.notion_url, args.reasoning)

        task_id = self.codec.extract(args.notion_url)
        if task_id is not None:
            self.ledger.record_proposed(task_id, args.task_name, args.notion_url)
        else:
            logger.warning("Proposal for %s does not reference a Notion task: %s", args.task_name, args.notion_url)

        return ToolResult.from_text(f"Slack proposal sent for {args.task_name}.")

    def descriptors(self):
        return [
            ToolDescriptor(
                name="search_notion",
                description="Search for a Database, Project, or Page ID.",
                arguments=SearchArgs,
                handler=self.search_notion,
                annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False),
            ),
            ToolDescriptor(
                name="create_proposed_task",
                description="Create a new task in Notion. Returns 'Created Task: <url>'.",
                arguments=CreateTaskArgs,
                handler=self.create_proposed_task,
                annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False),
            ),
            ToolDescriptor(
                name="update_task_status",
                description="Update the status of a Notion task (accepts the task id or URL).",
                arguments=UpdateTaskArgs,
                handler=self.update_task_status,
                annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=True),
            ),
            ToolDescriptor(
                name="delete_task",
                description="Archive a Notion task (accepts the task id or URL).",
                arguments=DeleteTaskArgs,
                handler=self.delete_task,
                annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True),
            ),
            ToolDescriptor(
                name="send_slack_proposal",
                description="Send a message to Slack asking for approval of a created task.",
                arguments=SendProposalArgs,
                handler=self.send_slack_proposal,
                annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=True),
            ),
        ]


def build_registry(
    task_store: NotionClient,
    chat: SlackClient,
    ledger: Optional[ProposalLedger] = None,
    codec: Optional[ReferenceCodec] = None,
) -> ToolRegistry:
    """Register the task tools and seal the registry."""
    tools = TaskTools(task_store, chat, ledger or ProposalLedger(), codec)
    registry = ToolRegistry()
    for descriptor in tools.descriptors():
        registry.register(descriptor)
    registry.seal()
    return registry
