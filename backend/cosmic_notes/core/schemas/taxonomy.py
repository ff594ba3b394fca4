from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.cluster import Cluster  # noqa: TCH001
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.models.todo import TodoItem  # noqa: TCH001


class TagFamily(AppBaseModel):
    """Derived view over every tag row sharing one name."""

    name: str
    note_count: int = 0
    note_ids: list[int] = Field(default_factory=list)
    categories: list[NoteCategory] = Field(default_factory=list)


class TagFamilyDetail(TagFamily):
    clusters: list[Cluster] = Field(default_factory=list)
    todos: list[TodoItem] = Field(default_factory=list)


class NoteTaxonomy(AppBaseModel):
    """Aggregated vocabulary for notes within a user's workspace.

    - tag_vocab: unique tag names observed across the user's notes
    """

    tag_vocab: list[str] = Field(default_factory=list)
