"""
Task Proposal Workflow

For each action item, in transcript order:
1. create_proposed_task in the Notion database
2. send_slack_proposal referencing the task just created

Items are processed one after another, never concurrently, so proposals
reach reviewers in the order the meeting discussed them. A failed create
skips that item only. A failed send after a successful create leaves the
task in Notion without a proposal; it is reported as a warning and not
rolled back.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..common.errors import ConfigError
from ..common.schemas import ExtractedItem, NormalizedTranscript
from ..server.tools import parse_created_task_url
from .normalizer import Normalizer
from .tool_client import ToolCallError, ToolCaller

logger = logging.getLogger("taskbridge.orchestrator.workflow")

DEFAULT_DATABASE_QUERY = "Tasks"


@dataclass
class ProjectContext:
    """Where tasks go and what to say when an item has no description"""
    database_id: str
    project_id: Optional[str] = None
    summary: str = ""


@dataclass
class Proposal:
    """A task created for one item and the proposal announcing it"""
    task_name: str
    task_url: str
    reasoning: str
    status: str
    notified: bool = True


@dataclass
class ItemFailure:
    item: ExtractedItem
    stage: str  # "create" or "notify"
    error: str


@dataclass
class WorkflowReport:
    """Result of proposing every item of one transcript"""
    proposals: List[Proposal] = field(default_factory=list)
    failures: List[ItemFailure] = field(default_factory=list)

    @property
    def warnings(self) -> List[ItemFailure]:
        return [f for f in self.failures if f.stage == "notify"]

    @property
    def notified(self) -> List[Proposal]:
        return [p for p in self.proposals if p.notified]


class ProposalWorkflow:
    """Creates tasks and proposals through a ToolCaller."""

    def __init__(self, tools: ToolCaller):
        self.tools = tools

    async def propose_all(self, items: List[ExtractedItem], context: ProjectContext) -> WorkflowReport:
        report = WorkflowReport()

        for index, item in enumerate(items, start=1):
            logger.info("[%d/%d] Creating task: %s", index, len(items), item.title)

            # 1. Create the task
            arguments = {
                "database_id": context.database_id,
                "title": item.title,
                "status": item.suggested_status.value,
            }
            if item.description:
                arguments["description"] = item.description
            if context.project_id:
                arguments["project_id"] = context.project_id

            try:
                result = await self.tools.call("create_proposed_task", arguments)
            except ToolCallError as e:
                logger.error("Create failed for '%s': %s", item.title, e)
                report.failures.append(ItemFailure(item, "create", str(e)))
                continue

            task_url = parse_created_task_url(result.text)
            if task_url is None:
                logger.error("Create for '%s' returned no task URL: %s", item.title, result.text)
                report.failures.append(ItemFailure(item, "create", f"no task URL in result: {result.text}"))
                continue

            # 2. Announce it
            reasoning = item.description or context.summary or f"Suggested status: {item.suggested_status.value}"
            proposal = Proposal(
                task_name=item.title,
                task_url=task_url,
                reasoning=reasoning,
                status=item.suggested_status.value,
            )
            try:
                await self.tools.call("send_slack_proposal", {
                    "task_name": item.title,
                    "notion_url": task_url,
                    "reasoning": reasoning,
                })
            except ToolCallError as e:
                logger.warning("Task '%s' created at %s but proposal failed: %s", item.title, task_url, e)
                proposal.notified = False
                report.failures.append(ItemFailure(item, "notify", str(e)))

            report.proposals.append(proposal)

        return report


def render_reply(normalized: NormalizedTranscript, report: WorkflowReport) -> str:
    """Human-readable summary of one run"""
    title = normalized.title or "Meeting"
    lines = [
        f"{title}: {len(normalized.items)} action items, "
        f"{len(report.proposals)} tasks created, {len(report.notified)} proposals sent."
    ]
    for proposal in report.proposals:
        marker = "proposed" if proposal.notified else "created, proposal not sent"
        lines.append(f"- {proposal.task_name} [{proposal.status}] {proposal.task_url} ({marker})")
    for failure in report.failures:
        if failure.stage == "create":
            lines.append(f"- {failure.item.title}: not created ({failure.error})")
    return "\n".join(lines)


class TranscriptOrchestrator:
    """normalize -> propose_all -> reply text"""

    def __init__(
        self,
        normalizer: Normalizer,
        tools: ToolCaller,
        database_id: str = "",
        project_id: Optional[str] = None,
        database_query: str = DEFAULT_DATABASE_QUERY,
    ):
        self.normalizer = normalizer
        self.tools = tools
        self.database_id = database_id
        self.project_id = project_id
        self.database_query = database_query

    async def find_database(self, tools: ToolCaller) -> str:
        """Look up the tasks database when no id is configured."""
        result = await tools.call("search_notion", {"query": self.database_query})
        try:
            matches = json.loads(result.text)
        except json.JSONDecodeError:
            matches = []
        if not matches:
            raise ConfigError(
                f"NOTION_DATABASE_ID is not set and no database matches '{self.database_query}'"
            )
        logger.info("Using database %s (%s)", matches[0].get("name", ""), matches[0]["id"])
        return matches[0]["id"]

    async def process(self, transcript: str) -> str:
        normalized = await self.normalizer.normalize(transcript)

        async with self.tools as tools:
            database_id = self.database_id or await self.find_database(tools)
            context = ProjectContext(
                database_id=database_id,
                project_id=self.project_id,
                summary=normalized.summary,
            )
            report = await ProposalWorkflow(tools).propose_all(normalized.items, context)

        for warning in report.warnings:
            logger.warning("Unannounced task: %s (%s)", warning.item.title, warning.error)
        return render_reply(normalized, report)
