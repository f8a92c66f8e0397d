"""
Proposal Ledger

In-memory record of the proposals sent to Slack and how each was resolved.
Lives for the lifetime of the process; nothing is persisted.

Workflow:
1. send_slack_proposal records the task as Proposed
2. The proposal resolver records Approved/Skipped/FeedbackRequested/Error
3. A later event for a task that is already Approved or Skipped is answered
   with an "already resolved" notice instead of mutating the task again
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ProposalState(str, Enum):
    """Lifecycle of a proposal"""
    PROPOSED = "proposed"
    APPROVED = "approved"
    SKIPPED = "skipped"
    FEEDBACK_REQUESTED = "feedback_requested"
    ERROR = "error"

    @property
    def is_final(self) -> bool:
        """Approved and Skipped settle the task; later actions are refused."""
        return self in (ProposalState.APPROVED, ProposalState.SKIPPED)


@dataclass
class ProposalEntry:
    """One proposal and its latest state"""
    task_id: str
    task_name: str
    task_url: str
    state: ProposalState = ProposalState.PROPOSED
    actor: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    resolved_at: Optional[str] = None


class ProposalLedger:
    """
    Tracks proposals by task id.

    Reads and writes are not coordinated across concurrent events: two
    callbacks racing on the same task may both pass ``get()`` before either
    records its outcome. The last write wins.
    """

    def __init__(self):
        self._entries: Dict[str, ProposalEntry] = {}

    def record_proposed(self, task_id: str, task_name: str, task_url: str) -> ProposalEntry:
        entry = ProposalEntry(task_id=task_id, task_name=task_name, task_url=task_url)
        self._entries[task_id] = entry
        return entry

    def record_outcome(
        self,
        task_id: str,
        state: ProposalState,
        actor: Optional[str],
        task_url: str = "",
    ) -> ProposalEntry:
        entry = self._entries.get(task_id)
        if entry is None:
            # Proposal sent by an earlier process; we only learn of it now
            entry = ProposalEntry(task_id=task_id, task_name="", task_url=task_url)
            self._entries[task_id] = entry
        if entry.state.is_final and not state.is_final:
            # A racing event failed after the proposal was resolved
            return entry
        entry.state = state
        entry.actor = actor
        entry.resolved_at = datetime.now(timezone.utc).isoformat()
        return entry

    def get(self, task_id: str) -> Optional[ProposalEntry]:
        return self._entries.get(task_id)

    def task_name(self, task_id: str, default: str = "This task") -> str:
        entry = self._entries.get(task_id)
        if entry and entry.task_name:
            return entry.task_name
        return default

    def list(self, state: Optional[ProposalState] = None) -> List[ProposalEntry]:
        entries = list(self._entries.values())
        if state is not None:
            entries = [e for e in entries if e.state == state]
        return entries

    def get_stats(self) -> Dict[str, int]:
        stats = {state.value: 0 for state in ProposalState}
        for entry in self._entries.values():
            stats[entry.state.value] += 1
        stats["total"] = len(self._entries)
        return stats
