from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory, normalize_zone


def _normalize_tag_names(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    normalized: list[str] = []
    for tag in v:
        if tag and tag.strip():
            name = tag.strip()[:100]
            if name not in normalized:
                normalized.append(name)
    return normalized


class NoteCreate(AppBaseModel):
    """Input for creating a note; missing title/category/zone are backfilled."""

    content: str = Field(..., max_length=20000, description="Note content")
    title: str | None = Field(default=None, max_length=255, description="Note title")
    category: NoteCategory | None = Field(default=None, description="Note category")
    zone: str | None = Field(default=None, max_length=50, description="Organizational label")
    tags: list[str] | None = Field(default=None, description="Explicit tags; skips tag extraction")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tag_names(v)

    @model_validator(mode="after")
    def validate_content(self) -> NoteCreate:
        content = self.content.strip()
        if not content:
            raise ValueError("content must be provided and non-empty")
        self.content = content
        if self.title is not None and not self.title.strip():
            self.title = None
        return self


class NoteUpdate(AppBaseModel):
    """Partial update; only fields that are explicitly set are applied."""

    content: str | None = Field(default=None, max_length=20000)
    title: str | None = Field(default=None, max_length=255)
    category: NoteCategory | None = None
    zone: str | None = Field(default=None, max_length=50)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tag_names(v)

    @field_validator("zone")
    @classmethod
    def validate_zone(cls, v: str | None) -> str | None:
        return normalize_zone(v)

    @model_validator(mode="after")
    def normalize_optional_strings(self) -> NoteUpdate:
        if self.title is not None and self.title.strip() == "":
            self.title = None
        if self.content is not None and self.content.strip() == "":
            raise ValueError("content cannot be emptied; delete the note instead")
        return self
