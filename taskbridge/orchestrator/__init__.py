"""
Orchestrator - meeting transcripts to task proposals

Normalizes a transcript with an LLM, then creates a Notion task and a Slack
proposal for each action item through the task tools.

Key Components:
- Normalizer: Transcript to NormalizedTranscript
- ProposalWorkflow: Sequential create-then-propose per item
- LocalToolCaller / RemoteToolCaller: In-process registry or MCP over SSE
"""

from .normalizer import Normalizer, NormalizationError
from .tool_client import (
    ToolCaller,
    LocalToolCaller,
    RemoteToolCaller,
    ToolCallError,
    ToolTransportError,
)
from .workflow import (
    ProjectContext,
    Proposal,
    ItemFailure,
    WorkflowReport,
    ProposalWorkflow,
    TranscriptOrchestrator,
)

__all__ = [
    "Normalizer",
    "NormalizationError",
    "ToolCaller",
    "LocalToolCaller",
    "RemoteToolCaller",
    "ToolCallError",
    "ToolTransportError",
    "ProjectContext",
    "Proposal",
    "ItemFailure",
    "WorkflowReport",
    "ProposalWorkflow",
    "TranscriptOrchestrator",
]
