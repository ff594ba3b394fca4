from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.cluster import Cluster  # noqa: TCH001
from cosmic_notes.core.models.note import Note  # noqa: TCH001


class ClusterWithNotes(AppBaseModel):
    """A cluster together with its current member notes (ascending id)."""

    cluster: Cluster
    notes: list[Note] = Field(default_factory=list)
