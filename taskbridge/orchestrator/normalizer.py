"""
Transcript Normalizer

Turns a raw meeting transcript into a NormalizedTranscript (title, summary,
action items with a suggested status) using an LLM.

A transcript is accepted whole or not at all: if the response cannot be
parsed into the expected structure, no item is used.
"""

import asyncio
import json
import logging
from typing import Optional

from pydantic import ValidationError

from ..common.errors import UpstreamError
from ..common.llm_client import LLMClient
from ..common.llm_utils import parse_llm_json
from ..common.schemas import NormalizedTranscript

logger = logging.getLogger("taskbridge.orchestrator.normalizer")


NORMALIZED_SCHEMA = """{
  "meeting_title": "string",
  "summary": "one or two sentences",
  "critical_action_items": [
    { "title": "Task Name", "description": "Context about the task", "suggested_status": "Not Started" | "In Progress" | "Done" }
  ]
}"""

NORMALIZER_SYSTEM_PROMPT = f"""You are the Normalizer Agent for a home renovation project manager.
Process the meeting transcript and output tasks following this exact schema:
{NORMALIZED_SCHEMA}

Rules:
- One action item per distinct piece of work, in the order they appear in the transcript
- suggested_status is "Done" for finished work, "In Progress" for ongoing work, otherwise "Not Started"
- Respond with the JSON object only"""

NORMALIZER_PROMPT = """Raw Transcript: "{transcript}"

Identify all actionable tasks, their status, and a brief description.
Output the result ONLY as a JSON object conforming to the required schema."""


class NormalizationError(UpstreamError):
    """The normalizer call failed or returned an unusable structure."""
    pass


class Normalizer:
    """LLM-backed transcript normalizer."""

    def __init__(self, llm: LLMClient, max_tokens: int = 2048):
        self._llm = llm
        self._max_tokens = max_tokens

    @property
    def is_available(self) -> bool:
        return self._llm is not None and self._llm.is_available

    async def normalize(self, raw_transcript: str) -> NormalizedTranscript:
        """
        Normalize a transcript.

        Raises:
            NormalizationError: LLM unavailable, call failed, or the response
                did not match the schema
        """
        if not self.is_available:
            raise NormalizationError("Normalizer LLM is not available (check API key)")

        prompt = NORMALIZER_PROMPT.format(transcript=raw_transcript)
        logger.info("Normalizing transcript (%d chars)", len(raw_transcript))

        try:
            raw = await asyncio.to_thread(
                self._llm.generate,
                prompt,
                system=NORMALIZER_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                json_mode=True,
            )
        except Exception as e:
            raise NormalizationError(f"Normalizer call failed: {e}") from e

        result = self.parse(raw)
        logger.info("Normalized '%s': %d action items", result.title, len(result.items))
        return result

    @staticmethod
    def parse(raw: Optional[str]) -> NormalizedTranscript:
        """Parse an LLM response into a NormalizedTranscript."""
        data = parse_llm_json(raw or "")
        if not data:
            raise NormalizationError(f"Normalizer returned no JSON object: {(raw or '')[:200]!r}")

        try:
            return NormalizedTranscript.model_validate(data)
        except ValidationError as e:
            raise NormalizationError(
                f"Normalizer output does not match schema: {json.dumps(data)[:200]} ({e.error_count()} errors)"
            ) from e
