"""Tests for the orchestrator HTTP surface."""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from taskbridge.common.config import TaskBridgeConfig
from taskbridge.common.errors import ConfigError
from taskbridge.orchestrator.app import create_app, extract_transcript
from taskbridge.orchestrator.normalizer import Normalizer
from taskbridge.orchestrator.tool_client import LocalToolCaller

NORMALIZED = {
    "meeting_title": "Site check-in",
    "summary": "",
    "critical_action_items": [
        {"title": "Living Room Painting", "suggested_status": "Done"},
        {"title": "HVAC install", "suggested_status": "Not Started"},
    ],
}


def make_normalizer(response):
    llm = MagicMock()
    llm.is_available = True
    llm.generate.return_value = response
    return Normalizer(llm)


@pytest.fixture
def config(database_id):
    config = TaskBridgeConfig()
    config.notion.database_id = database_id
    return config


@pytest.fixture
def client(config, registry):
    app = create_app(
        config,
        normalizer=make_normalizer(json.dumps(NORMALIZED)),
        caller_factory=lambda: LocalToolCaller(registry),
    )
    with TestClient(app) as test_client:
        yield test_client


class TestProcessTranscript:
    @pytest.mark.parametrize("path", ["/process-transcript", "/webhook"])
    @pytest.mark.parametrize("field", ["transcript", "text", "content"])
    def test_success(self, client, chat, path, field):
        response = client.post(path, json={field: "Living Room Painting is complete. HVAC install not started."})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert "2 proposals sent" in body["agent_reply"]
        assert len(chat.proposals) == 2

    def test_missing_transcript(self, client, task_store):
        response = client.post("/process-transcript", json={"notes": "hi"})
        assert response.status_code == 400
        assert "error" in response.json()
        assert task_store.calls == []

    def test_body_not_json(self, client):
        response = client.post("/process-transcript", content=b"plain text transcript")
        assert response.status_code == 400

    def test_normalizer_failure_is_500(self, config, registry):
        app = create_app(
            config,
            normalizer=make_normalizer("no json here"),
            caller_factory=lambda: LocalToolCaller(registry),
        )
        with TestClient(app) as client:
            response = client.post("/process-transcript", json={"transcript": "t"})
        assert response.status_code == 500
        assert "no JSON object" in response.json()["error"]

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["normalizer_available"] is True


class TestExtractTranscript:
    def test_field_precedence(self):
        assert extract_transcript({"text": "b", "transcript": "a"}) == "a"

    def test_blank_fields_skipped(self):
        assert extract_transcript({"transcript": "  ", "content": "c"}) == "c"

    def test_non_dict(self):
        assert extract_transcript(["transcript"]) is None


class TestDefaultCallers:
    def test_in_process_needs_notion_key(self, config):
        with pytest.raises(ConfigError):
            create_app(config, normalizer=make_normalizer("{}"))

    def test_remote_when_url_configured(self, config):
        config.orchestrator.mcp_server_url = "http://localhost:3000/sse"
        app = create_app(config, normalizer=make_normalizer("{}"))
        with TestClient(app) as client:
            assert client.get("/health").json()["tools"] == "remote (http://localhost:3000/sse)"
