from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID

from pydantic import Field

from .base import AppBaseModel, TimestampedModel


class ReviewDraft(AppBaseModel):
    review: str = Field(..., min_length=1)
    note_count: int = Field(..., ge=1)
    period_start: datetime
    period_end: datetime
    user_id: UUID


class WeeklyReview(TimestampedModel):
    """Markdown review of the notes written during one period."""

    id: int
    review: str
    note_count: int = 0
    period_start: datetime | None = None
    period_end: datetime | None = None
    user_id: UUID
