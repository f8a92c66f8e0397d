"""Tests for transcript normalization."""

import json
from unittest.mock import MagicMock

import pytest

from taskbridge.common.schemas import ExtractedItem, NormalizedTranscript, TaskStatus
from taskbridge.orchestrator.normalizer import (
    NORMALIZER_SYSTEM_PROMPT,
    NormalizationError,
    Normalizer,
)


def fake_llm(response=None, error=None, available=True):
    llm = MagicMock()
    llm.is_available = available
    if error is not None:
        llm.generate.side_effect = error
    else:
        llm.generate.return_value = response
    return llm


class TestNormalize:
    @pytest.mark.asyncio
    async def test_valid_response(self):
        llm = fake_llm(json.dumps({
            "meeting_title": "Kitchen walkthrough",
            "summary": "Cabinets arrive Friday.",
            "critical_action_items": [
                {"title": "Install cabinets", "description": "Friday delivery", "suggested_status": "In Progress"},
            ],
        }))
        result = await Normalizer(llm).normalize("we talked about cabinets")

        assert result.title == "Kitchen walkthrough"
        assert result.items[0].suggested_status == TaskStatus.IN_PROGRESS
        _, kwargs = llm.generate.call_args
        assert kwargs["json_mode"] is True
        assert kwargs["system"] == NORMALIZER_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_fenced_response(self):
        raw = '```json\n{"meeting_title": "M", "summary": "", "critical_action_items": []}\n```'
        result = await Normalizer(fake_llm(raw)).normalize("t")
        assert result.items == []

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        with pytest.raises(NormalizationError, match="call failed"):
            await Normalizer(fake_llm(error=TimeoutError("slow"))).normalize("t")

    @pytest.mark.asyncio
    async def test_unavailable_llm(self):
        normalizer = Normalizer(fake_llm(available=False))
        assert not normalizer.is_available
        with pytest.raises(NormalizationError, match="not available"):
            await normalizer.normalize("t")


class TestParse:
    def test_not_json(self):
        with pytest.raises(NormalizationError):
            Normalizer.parse("I could not find any tasks.")

    def test_one_bad_item_rejects_whole_transcript(self):
        raw = json.dumps({
            "meeting_title": "M",
            "critical_action_items": [
                {"title": "Good", "suggested_status": "Done"},
                {"title": "", "suggested_status": "Done"},
            ],
        })
        with pytest.raises(NormalizationError):
            Normalizer.parse(raw)

    def test_unknown_status_rejected(self):
        raw = json.dumps({"critical_action_items": [{"title": "A", "suggested_status": "Blocked"}]})
        with pytest.raises(NormalizationError):
            Normalizer.parse(raw)

    def test_items_must_be_list(self):
        with pytest.raises(NormalizationError):
            Normalizer.parse(json.dumps({"critical_action_items": "none"}))


class TestSchemas:
    @pytest.mark.parametrize("value,expected", [
        ("Not Started", TaskStatus.NOT_STARTED),
        ("not_started", TaskStatus.NOT_STARTED),
        ("NotStarted", TaskStatus.NOT_STARTED),
        ("in-progress", TaskStatus.IN_PROGRESS),
        ("DONE", TaskStatus.DONE),
    ])
    def test_status_variants(self, value, expected):
        assert TaskStatus.parse(value) == expected

    def test_item_defaults(self):
        item = ExtractedItem(title="Paint")
        assert item.description == ""
        assert item.suggested_status == TaskStatus.NOT_STARTED

    def test_field_names_accepted(self):
        result = NormalizedTranscript(title="M", items=[ExtractedItem(title="A")])
        assert result.items[0].title == "A"
