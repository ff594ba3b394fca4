from __future__ import annotations

from enum import Enum
from uuid import UUID

from pydantic import Field, field_validator

from .base import AppBaseModel, ChatMessage, TimestampedModel


class NoteCategory(str, Enum):
    """Category of a note; drives prompt selection and clustering scope."""

    TODO = "to-do"
    COLLECTION = "collection"
    BRAINSTORM = "brainstorm"
    JOURNAL = "journal"
    MEETING = "meeting"
    RESEARCH = "research"
    LEARNING = "learning"
    FEEDBACK = "feedback"
    SCRATCHPAD = "scratchpad"


DEFAULT_CATEGORY = NoteCategory.SCRATCHPAD
DEFAULT_ZONE = "other"


def normalize_zone(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip().lower()
    return stripped[:50] if stripped else None


class NoteDraft(AppBaseModel):
    """Fields for a note that has not been stored yet (the store assigns the id)."""

    title: str | None = Field(default=None, max_length=255)
    content: str = Field(default="", max_length=20000)
    category: NoteCategory = DEFAULT_CATEGORY
    zone: str | None = None
    user_id: UUID

    @field_validator("zone")
    @classmethod
    def validate_zone(cls, v: str | None) -> str | None:
        return normalize_zone(v)


class Note(TimestampedModel):
    """Note domain model."""

    id: int = Field(..., description="Store-assigned note identifier")
    title: str | None = Field(default=None, description="Note title")
    content: str = Field(default="", description="Note content")
    category: NoteCategory = Field(default=DEFAULT_CATEGORY, description="Note category")
    zone: str | None = Field(default=None, description="Organizational label, orthogonal to category")
    chat_history: list[ChatMessage] = Field(default_factory=list)
    user_id: UUID = Field(..., description="Owner of the note")

    @field_validator("zone")
    @classmethod
    def validate_zone(cls, v: str | None) -> str | None:
        return normalize_zone(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 42,
                    "title": "Weekend groceries",
                    "content": "buy milk, eggs and bread #groceries",
                    "category": "to-do",
                    "zone": "personal",
                    "chat_history": [],
                    "user_id": "3f1c9d82-e4b0-4a6e-9b1d-2f6c8a7e5d10",
                }
            ]
        }
    }
