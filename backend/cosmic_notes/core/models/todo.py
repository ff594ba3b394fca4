from __future__ import annotations

from uuid import UUID

from pydantic import Field

from .base import AppBaseModel, TimestampedModel


class TodoDraft(AppBaseModel):
    tag_family: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, max_length=1000)
    done: bool = False
    user_id: UUID


class TodoItem(TimestampedModel):
    """Checklist entry attached to a tag family."""

    id: int
    tag_family: str
    text: str
    done: bool = False
    user_id: UUID
