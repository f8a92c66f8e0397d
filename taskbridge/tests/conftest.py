"""Shared fixtures: in-memory stand-ins for Notion and Slack."""

import asyncio

import pytest

from taskbridge.common.notion_client import NotionError
from taskbridge.common.reference import ReferenceCodec
from taskbridge.common.schemas import TrackedTask
from taskbridge.common.slack_client import SlackError
from taskbridge.server.ledger import ProposalLedger
from taskbridge.server.resolution import ProposalResolver
from taskbridge.server.tools import build_registry

DATABASE_ID = "d" * 32


class FakeTaskStore:
    """Records every call; behaves like a Notion database of task pages."""

    def __init__(self):
        self.calls = []
        self.tasks = {}
        self.fail_operations = set()
        self.fail_titles = set()
        self._counter = 0

    def add_task(self, title, status="Not Started"):
        self._counter += 1
        task_id = f"{self._counter:032x}"
        task = TrackedTask(
            id=task_id,
            url=f"https://www.notion.so/{title.replace(' ', '-')}-{task_id}",
            title=title,
            status=status,
        )
        self.tasks[task_id] = task
        return task

    def _check(self, operation):
        if operation in self.fail_operations:
            raise NotionError(f"Notion {operation} failed")

    async def search(self, query, object_type="database", page_size=5):
        self.calls.append(("search", query))
        self._check("search")
        return [{
            "id": DATABASE_ID,
            "name": "Tasks",
            "url": f"https://www.notion.so/{DATABASE_ID}",
            "type": object_type,
        }]

    async def create_task(self, database_id, title, status="Not Started", description="", project_id=None):
        self.calls.append(("create_task", database_id, title, status))
        self._check("create_task")
        if title in self.fail_titles:
            raise NotionError(f"Notion rejected {title}")
        task = self.add_task(title, status)
        task.description = description
        task.project_id = project_id
        return task

    async def update_status(self, task_id, status):
        self.calls.append(("update_status", task_id, status))
        self._check("update_status")
        await asyncio.sleep(0)
        task = self.tasks.get(task_id)
        if task is None:
            raise NotionError(f"Could not find page with ID: {task_id}")
        if task.archived:
            raise NotionError("Can't edit block that is archived.")
        task.status = status

    async def archive(self, task_id):
        self.calls.append(("archive", task_id))
        self._check("archive")
        await asyncio.sleep(0)
        task = self.tasks.get(task_id)
        if task is None:
            raise NotionError(f"Could not find page with ID: {task_id}")
        task.archived = True

    async def close(self):
        pass

    def calls_named(self, operation):
        return [c for c in self.calls if c[0] == operation]


class FakeChat:
    """Collects proposals and response_url replies instead of posting them."""

    def __init__(self, configured=True):
        self.configured = configured
        self.proposals = []
        self.replies = []
        self.fail_proposals = set()
        self.fail_replies = False

    @property
    def is_configured(self):
        return self.configured

    async def send_proposal(self, task_name, notion_url, reasoning):
        if task_name in self.fail_proposals:
            raise SlackError(f"Slack returned 500 for {task_name}")
        self.proposals.append({"task_name": task_name, "notion_url": notion_url, "reasoning": reasoning})

    async def respond(self, response_url, text, replace_original=True, blocks=None):
        if self.fail_replies:
            raise SlackError("Slack returned 404: expired_url")
        self.replies.append({"url": response_url, "text": text, "replace_original": replace_original})

    async def close(self):
        pass


@pytest.fixture
def task_store():
    return FakeTaskStore()


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def ledger():
    return ProposalLedger()


@pytest.fixture
def codec():
    return ReferenceCodec()


@pytest.fixture
def registry(task_store, chat, ledger, codec):
    return build_registry(task_store, chat, ledger, codec)


@pytest.fixture
def resolver(task_store, chat, ledger, codec):
    return ProposalResolver(task_store, chat, ledger, codec)


@pytest.fixture
def database_id():
    return DATABASE_ID
