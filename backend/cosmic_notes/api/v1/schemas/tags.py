from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.tagging import MergeSuggestion, TagMerge, TagMergeResult  # noqa: TCH001


class MergeTagsRequest(AppBaseModel):
    merges: list[TagMerge] = Field(default_factory=list)


class MergeTagsResponse(AppBaseModel):
    results: list[TagMergeResult]


class RefineTagsResponse(AppBaseModel):
    suggestions: list[MergeSuggestion]


class GenerateClustersRequest(AppBaseModel):
    force_refresh: bool = False


class GenerateClusterRequest(AppBaseModel):
    """Build one cluster; identify the tag by name or by tag-row id."""

    category: NoteCategory
    tag_name: str | None = None
    tag_id: int | None = None
    force_refresh: bool = False
