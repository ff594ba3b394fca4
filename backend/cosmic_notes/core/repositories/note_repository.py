from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from cosmic_notes.core.models.note import Note, NoteCategory, NoteDraft
    from cosmic_notes.core.schemas.note_search import NoteSearchResult


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Contract used by services and dependency injection. Implementations should
    perform I/O (database, network) and therefore expose async methods.
    Deleting a note must cascade to its tag rows.
    """

    @abstractmethod
    async def create(self, draft: NoteDraft) -> Note:  # pragma: no cover - interface only
        """Persist a new note and return the stored entity."""

    @abstractmethod
    async def get(self, note_id: int) -> Note | None:  # pragma: no cover
        """Fetch a note by id or return None if not found."""

    @abstractmethod
    async def list(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        category: NoteCategory | None = None,
        zone: str | None = None,
    ) -> Sequence[Note]:  # pragma: no cover
        """Return notes ordered by last update, newest first."""

    @abstractmethod
    async def list_by_ids(
        self,
        note_ids: Iterable[int],
        *,
        category: NoteCategory | None = None,
    ) -> Sequence[Note]:  # pragma: no cover
        """Return the notes with the given ids, ordered by ascending id."""

    @abstractmethod
    async def list_created_between(self, start: datetime, end: datetime) -> Sequence[Note]:  # pragma: no cover
        """Return notes created in [start, end], newest first."""

    @abstractmethod
    async def update_fields(self, note_id: int, changes: dict[str, Any]) -> Note | None:  # pragma: no cover
        """Partially update fields on a note and return the updated entity, or None if missing."""

    @abstractmethod
    async def delete(self, note_id: int) -> bool:  # pragma: no cover
        """Delete a note by id. Return True if a row was removed, False otherwise."""

    @abstractmethod
    async def search(
        self,
        *,
        query: str | None,
        category: NoteCategory | None,
        zone: str | None,
        limit: int,
    ) -> Sequence[Note]: ...

    @abstractmethod
    async def match(
        self,
        *,
        embedding: list[float],
        threshold: float,
        count: int,
    ) -> Sequence[NoteSearchResult]: ...

    @abstractmethod
    async def set_embedding(self, note_id: int, embedding: list[float]) -> None: ...
