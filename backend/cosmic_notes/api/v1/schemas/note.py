from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel, ChatMessage
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.lifecycle import SideEffectOutcome  # noqa: TCH001

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note
    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.schemas.lifecycle import NoteMutationResult


class TagRead(AppBaseModel):
    id: int
    name: str
    confidence: float


class NoteRead(AppBaseModel):
    id: int
    title: str | None
    content: str
    category: NoteCategory
    zone: str | None
    tags: list[TagRead] = Field(default_factory=list)
    chat_history: list[ChatMessage] = Field(default_factory=list)
    user_id: UUID
    created_at: datetime
    updated_at: datetime | None

    @classmethod
    def from_note(cls, note: Note, tags: Sequence[Tag] = ()) -> NoteRead:
        return cls(
            **note.model_dump(),
            tags=[TagRead(id=t.id, name=t.name, confidence=t.confidence) for t in tags],
        )


class NoteMutationResponse(AppBaseModel):
    """A note mutation and the outcome of each enrichment step it triggered."""

    note: NoteRead
    side_effects: list[SideEffectOutcome] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: NoteMutationResult, tags: Sequence[Tag] = ()) -> NoteMutationResponse:
        return cls(note=NoteRead.from_note(result.note, tags), side_effects=result.side_effects)


class SaveTagsRequest(AppBaseModel):
    tags: list[str] = Field(default_factory=list, description="Replaces every tag of the note")


class SuggestTagsRequest(AppBaseModel):
    content: str = Field(..., min_length=1, max_length=20000)
    category: NoteCategory | None = None
    confidence_threshold: float | None = Field(default=None, ge=0, le=1)


class ChatHistoryUpdate(AppBaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
