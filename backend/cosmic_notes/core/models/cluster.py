from __future__ import annotations

from uuid import UUID

from pydantic import Field

from .base import AppBaseModel, ChatMessage, TimestampedModel
from .note import NoteCategory


class ClusterDraft(AppBaseModel):
    """Values written by a cluster upsert keyed on (user_id, tag_family, category)."""

    tag_family: str = Field(..., min_length=1)
    category: NoteCategory
    note_count: int = Field(..., ge=0)
    summary: str
    user_id: UUID


class Cluster(TimestampedModel):
    """Aggregate of notes sharing one tag inside one category."""

    id: int
    tag_family: str
    category: NoteCategory
    note_count: int = Field(default=0, ge=0)
    summary: str = ""
    chat_history: list[ChatMessage] = Field(default_factory=list)
    user_id: UUID
