from __future__ import annotations

from pydantic import Field, field_validator

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.lifecycle import SideEffectOutcome  # noqa: TCH001


class TagSuggestion(AppBaseModel):
    """A candidate tag for a note with the model's confidence."""

    name: str = Field(..., min_length=1, max_length=100)
    confidence: float = Field(default=1.0, ge=0, le=1)


class ExtractedTag(AppBaseModel):
    tag: str = Field(description="The tag in PascalCase")
    confidence: float = Field(ge=0, le=1, description="Confidence score between 0 and 1")


class TagExtractionOutput(AppBaseModel):
    """Structured output contract for the tagging model."""

    tags: list[ExtractedTag] = Field(
        description="Tags that best describe the content, from broad to specific",
    )


class NoteFields(AppBaseModel):
    """Structured output contract for note classification."""

    title: str = Field(description="A concise title for the note")
    category: NoteCategory = Field(description="The most appropriate category for the note")
    zone: str = Field(description="personal, work, or other")


class ClusterSummaryOutput(AppBaseModel):
    summary: str = Field(description="The organized notes as a markdown document")


class TagMerge(AppBaseModel):
    """A request to fold `similar_names` into `primary_name`."""

    primary_name: str = Field(..., min_length=1, max_length=100)
    similar_names: list[str] = Field(..., min_length=1)

    @field_validator("primary_name")
    @classmethod
    def validate_primary(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("primary_name must be a non-empty string")
        return v.strip()

    @field_validator("similar_names")
    @classmethod
    def validate_similar(cls, v: list[str]) -> list[str]:
        names: list[str] = []
        for name in v:
            if not isinstance(name, str) or not name.strip():
                raise ValueError("similar_names must contain non-empty strings")
            if name.strip() not in names:
                names.append(name.strip())
        return names


class TagMergeResult(AppBaseModel):
    primary_name: str
    success: bool
    affected_note_ids: list[int] = Field(default_factory=list)
    error: str | None = None
    side_effects: list[SideEffectOutcome] = Field(default_factory=list)


class MergeSuggestion(AppBaseModel):
    primary_name: str = Field(description="The tag to keep")
    similar_names: list[str] = Field(description="Tags to merge into the primary tag")
    confidence: float = Field(ge=0, le=1, description="Confidence in this merge suggestion")
    reason: str = Field(description="Brief explanation of why these tags should be merged")


class MergeSuggestionOutput(AppBaseModel):
    suggestions: list[MergeSuggestion]
