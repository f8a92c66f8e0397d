"""Tests for the in-memory proposal ledger."""

from taskbridge.server.ledger import ProposalLedger, ProposalState


class TestProposalLedger:
    def test_record_and_resolve(self):
        ledger = ProposalLedger()
        ledger.record_proposed("t1", "Paint", "https://www.notion.so/t1")
        entry = ledger.record_outcome("t1", ProposalState.APPROVED, "dana")

        assert entry.task_name == "Paint"
        assert entry.state.is_final
        assert entry.resolved_at is not None

    def test_outcome_for_unknown_task(self):
        ledger = ProposalLedger()
        entry = ledger.record_outcome("t9", ProposalState.SKIPPED, "sam", "https://www.notion.so/t9")
        assert entry.task_url == "https://www.notion.so/t9"
        assert ledger.task_name("t9") == "This task"

    def test_feedback_and_error_are_not_final(self):
        assert not ProposalState.FEEDBACK_REQUESTED.is_final
        assert not ProposalState.ERROR.is_final
        assert not ProposalState.PROPOSED.is_final

    def test_list_and_stats(self):
        ledger = ProposalLedger()
        ledger.record_proposed("t1", "A", "u1")
        ledger.record_proposed("t2", "B", "u2")
        ledger.record_outcome("t2", ProposalState.SKIPPED, "dana")

        assert [e.task_id for e in ledger.list(ProposalState.PROPOSED)] == ["t1"]
        stats = ledger.get_stats()
        assert stats["proposed"] == 1
        assert stats["skipped"] == 1
        assert stats["total"] == 2

    def test_late_error_keeps_final_outcome(self):
        ledger = ProposalLedger()
        ledger.record_proposed("t1", "Paint", "u1")
        ledger.record_outcome("t1", ProposalState.SKIPPED, "dana")
        entry = ledger.record_outcome("t1", ProposalState.ERROR, "sam")

        assert entry.state == ProposalState.SKIPPED
        assert entry.actor == "dana"
