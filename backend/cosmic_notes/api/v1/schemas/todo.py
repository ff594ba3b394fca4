from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel


class TodoCreate(AppBaseModel):
    tag_family: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1, max_length=1000)


class TodoUpdate(AppBaseModel):
    text: str | None = Field(default=None, min_length=1, max_length=1000)
    done: bool | None = None
