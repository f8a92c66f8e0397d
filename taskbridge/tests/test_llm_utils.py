"""Tests for shared LLM response parsing utilities."""

from taskbridge.common.llm_utils import parse_llm_json


class TestParseLlmJson:
    def test_valid_json(self):
        assert parse_llm_json('{"key": "value"}') == {"key": "value"}

    def test_json_with_markdown_fences(self):
        raw = '```json\n{"meeting_title": "Sync", "critical_action_items": []}\n```'
        result = parse_llm_json(raw)
        assert result == {"meeting_title": "Sync", "critical_action_items": []}

    def test_json_embedded_in_text(self):
        raw = 'Here are the tasks: {"summary": "ok"} Let me know if you need more.'
        assert parse_llm_json(raw) == {"summary": "ok"}

    def test_no_json_returns_empty_dict(self):
        assert parse_llm_json("No action items were discussed.") == {}

    def test_empty_string_returns_empty_dict(self):
        assert parse_llm_json("") == {}

    def test_top_level_list_returns_empty_dict(self):
        assert parse_llm_json('[{"title": "A"}]') == {}

    def test_invalid_json_with_braces_returns_empty(self):
        assert parse_llm_json('{"broken: json') == {}
