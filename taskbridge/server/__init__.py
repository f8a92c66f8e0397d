"""
Tool Server - Notion task tools and proposal review

Exposes a fixed tool set to an agent runtime over MCP (SSE transport) and
resolves the Slack proposals those tools send.

Key Components:
- ToolRegistry: Schema-validated tool table, sealed at startup
- SessionManager: Single active SSE session and JSON-RPC dispatch
- ProposalResolver: Approve/Skip/Feedback handling for proposals
- ProposalLedger: In-memory proposal states
"""

from .registry import (
    ToolRegistry,
    ToolDescriptor,
    ToolArguments,
    ToolResult,
    ToolError,
    DuplicateToolError,
    UnknownToolError,
    ToolValidationError,
    ToolHandlerError,
)
from .session import Session, SessionManager, SessionNotFoundError
from .ledger import ProposalLedger, ProposalState
from .resolution import ProposalResolver, ResolutionOutcome
from .tools import build_registry

__all__ = [
    "ToolRegistry",
    "ToolDescriptor",
    "ToolArguments",
    "ToolResult",
    "ToolError",
    "DuplicateToolError",
    "UnknownToolError",
    "ToolValidationError",
    "ToolHandlerError",
    "Session",
    "SessionManager",
    "SessionNotFoundError",
    "ProposalLedger",
    "ProposalState",
    "ProposalResolver",
    "ResolutionOutcome",
    "build_registry",
]
