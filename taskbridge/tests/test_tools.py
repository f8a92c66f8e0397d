"""Tests for the Notion/Slack task tools."""

import json

import pytest

from taskbridge.server.ledger import ProposalState
from taskbridge.server.registry import ToolHandlerError, ToolValidationError
from taskbridge.server.tools import parse_created_task_url


EXPECTED_TOOLS = [
    "search_notion",
    "create_proposed_task",
    "update_task_status",
    "delete_task",
    "send_slack_proposal",
]


class TestToolSet:
    def test_registry_sealed_with_fixed_tools(self, registry):
        assert registry.sealed
        assert registry.names == EXPECTED_TOOLS

    def test_destructive_hint_only_on_delete(self, registry):
        hints = {t.name: t.annotations.destructiveHint for t in registry.list_tools()}
        assert hints["delete_task"] is True
        assert not any(v for k, v in hints.items() if k != "delete_task")


class TestCreateProposedTask:
    @pytest.mark.asyncio
    async def test_returns_created_url(self, registry, task_store, database_id):
        result = await registry.invoke("create_proposed_task", {
            "database_id": database_id,
            "title": "Order HVAC supplies",
        })
        url = parse_created_task_url(result.text)
        task = next(iter(task_store.tasks.values()))
        assert url == task.url
        assert task.status == "Not Started"

    @pytest.mark.asyncio
    async def test_rejects_missing_title_before_calling_notion(self, registry, task_store, database_id):
        with pytest.raises(ToolValidationError) as exc_info:
            await registry.invoke("create_proposed_task", {"database_id": database_id})
        assert exc_info.value.field == "title"
        assert task_store.calls == []

    @pytest.mark.asyncio
    async def test_notion_failure_is_handler_error(self, registry, task_store, database_id):
        task_store.fail_operations.add("create_task")
        with pytest.raises(ToolHandlerError):
            await registry.invoke("create_proposed_task", {"database_id": database_id, "title": "X"})


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_accepts_task_url(self, registry, task_store):
        task = task_store.add_task("Paint hallway")
        result = await registry.invoke("update_task_status", {"task_id": task.url, "status": "In Progress"})
        assert task.status == "In Progress"
        assert task.id in result.text

    @pytest.mark.asyncio
    async def test_delete_archives(self, registry, task_store):
        task = task_store.add_task("Paint hallway")
        result = await registry.invoke("delete_task", {"task_id": task.id})
        assert task.archived
        assert result.text == f"Archived Task {task.id}"

    @pytest.mark.asyncio
    async def test_bad_reference_is_handler_error(self, registry, task_store):
        with pytest.raises(ToolHandlerError):
            await registry.invoke("delete_task", {"task_id": "nonsense"})
        assert task_store.calls == []


class TestSearchAndPropose:
    @pytest.mark.asyncio
    async def test_search_returns_json_list(self, registry, database_id):
        result = await registry.invoke("search_notion", {"query": "Tasks"})
        matches = json.loads(result.text)
        assert matches[0]["id"] == database_id

    @pytest.mark.asyncio
    async def test_send_proposal_records_ledger(self, registry, task_store, chat, ledger):
        task = task_store.add_task("Install HVAC")
        result = await registry.invoke("send_slack_proposal", {
            "task_name": "Install HVAC",
            "notion_url": task.url,
            "reasoning": "Discussed in standup",
        })
        assert result.text == "Slack proposal sent for Install HVAC."
        assert chat.proposals == [{
            "task_name": "Install HVAC",
            "notion_url": task.url,
            "reasoning": "Discussed in standup",
        }]
        assert ledger.get(task.id).state == ProposalState.PROPOSED

    @pytest.mark.asyncio
    async def test_slack_failure_is_handler_error(self, registry, chat, ledger):
        chat.fail_proposals.add("Install HVAC")
        with pytest.raises(ToolHandlerError):
            await registry.invoke("send_slack_proposal", {
                "task_name": "Install HVAC",
                "notion_url": "https://www.notion.so/x",
                "reasoning": "r",
            })
        assert ledger.list() == []


class TestParseCreatedTaskUrl:
    def test_parses_url(self):
        assert parse_created_task_url("Created Task: https://www.notion.so/abc") == "https://www.notion.so/abc"

    def test_none_when_absent(self):
        assert parse_created_task_url("Something else") is None
        assert parse_created_task_url("") is None
