from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.cluster import Cluster, ClusterDraft
    from cosmic_notes.core.models.note import NoteCategory


class ClusterRepository(ABC):
    """Abstract repository for clusters, unique on (user, tag_family, category)."""

    @abstractmethod
    async def get(self, cluster_id: int) -> Cluster | None:  # pragma: no cover - interface only
        """Fetch a cluster by id."""

    @abstractmethod
    async def get_by_family(self, tag_family: str, category: NoteCategory) -> Cluster | None:  # pragma: no cover
        """Fetch the cluster of one tag family in one category."""

    @abstractmethod
    async def list(
        self,
        *,
        tag_family: str | None = None,
        category: NoteCategory | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Cluster]:  # pragma: no cover
        """Return clusters ordered by last update, newest first."""

    @abstractmethod
    async def upsert(self, draft: ClusterDraft) -> Cluster:  # pragma: no cover
        """Insert or overwrite the cluster keyed on (user_id, tag_family, category).

        Chat history of an existing row is preserved.
        """

    @abstractmethod
    async def update_fields(self, cluster_id: int, changes: dict[str, Any]) -> Cluster | None:  # pragma: no cover
        """Partially update a cluster."""

    @abstractmethod
    async def delete_by_family(self, tag_family: str, category: NoteCategory | None = None) -> int:  # pragma: no cover
        """Delete the family's clusters (optionally one category); return the count."""
