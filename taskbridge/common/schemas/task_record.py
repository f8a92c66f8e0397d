"""
Task Schemas

Structures flowing through one transcript run:

    raw transcript -> NormalizedTranscript(items: ExtractedItem[]) -> TrackedTask
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Enums
# ============================================================================

class TaskStatus(str, Enum):
    """Status values the normalizer may suggest for an action item"""
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    DONE = "Done"

    @classmethod
    def parse(cls, value: str) -> "TaskStatus":
        """Parse loose spellings such as 'not_started' or 'in-progress'."""
        key = re.sub(r"[\s_\-]+", "", str(value)).lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == key:
                return member
        raise ValueError(f"Unknown task status: {value!r}")


# ============================================================================
# Normalizer output
# ============================================================================

class ExtractedItem(BaseModel):
    """One action item found in a transcript"""
    title: str = Field(..., min_length=1, description="Task name")
    description: str = Field(default="", description="Context about the task")
    suggested_status: TaskStatus = TaskStatus.NOT_STARTED

    @field_validator("suggested_status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if isinstance(value, TaskStatus):
            return value
        return TaskStatus.parse(value)


class NormalizedTranscript(BaseModel):
    """Structured form of a meeting transcript"""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="", alias="meeting_title")
    summary: str = ""
    items: List[ExtractedItem] = Field(default_factory=list, alias="critical_action_items")


# ============================================================================
# Task store records
# ============================================================================

@dataclass
class TrackedTask:
    """A task page in the Notion database"""
    id: str
    url: str
    title: str = ""
    status: Optional[str] = None
    description: str = ""
    project_id: Optional[str] = None
    archived: bool = False
