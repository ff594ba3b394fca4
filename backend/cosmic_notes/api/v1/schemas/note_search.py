from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field, field_validator

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.note_search import NoteSearchQuery


class NoteSearchRequest(AppBaseModel):
    query: str | None = Field(default=None, description="Keyword or natural-language query")
    category: NoteCategory | None = None
    zone: str | None = None
    limit: int = Field(default=20)

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        return max(1, min(200, v))

    def to_query(self) -> NoteSearchQuery:
        return NoteSearchQuery(query=self.query, category=self.category, zone=self.zone, limit=self.limit)


class NoteSearchResultPublic(AppBaseModel):
    id: int
    title: str | None
    content: str
    category: NoteCategory
    zone: str | None
    tags: list[str]
    user_id: UUID
    created_at: datetime
    updated_at: datetime | None
    rank: float
