from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001


class NoteSearchResult(AppBaseModel):
    """Typed result for search endpoints that include a ranking score."""

    id: int
    title: str | None
    content: str
    category: NoteCategory
    zone: str | None
    tags: list[str] = Field(default_factory=list)
    user_id: UUID
    created_at: datetime
    updated_at: datetime | None
    rank: float = 0.0


class NoteSearchQuery(AppBaseModel):
    """Filters shared by lexical search, semantic search and the assistant."""

    query: str | None = None
    category: NoteCategory | None = None
    zone: str | None = None
    limit: int = Field(default=20, ge=1, le=200)
