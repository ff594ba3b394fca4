from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.schemas.tagging import TagSuggestion


class TagRepository(ABC):
    """Abstract repository for note-tag edges.

    A row links one note to one tag name; (note_id, name) is unique.
    """

    @abstractmethod
    async def get(self, tag_id: int) -> Tag | None:  # pragma: no cover - interface only
        """Fetch a tag row by id."""

    @abstractmethod
    async def list_all(self) -> Sequence[Tag]:  # pragma: no cover
        """Return every tag row visible to the caller."""

    @abstractmethod
    async def list_for_note(self, note_id: int) -> Sequence[Tag]:  # pragma: no cover
        """Return the tag rows of one note ordered by name."""

    @abstractmethod
    async def list_for_notes(self, note_ids: Iterable[int]) -> Sequence[Tag]:  # pragma: no cover
        """Return the tag rows of several notes."""

    @abstractmethod
    async def list_by_names(self, names: Iterable[str]) -> Sequence[Tag]:  # pragma: no cover
        """Return every row whose name is in `names`."""

    @abstractmethod
    async def replace_for_note(self, note_id: int, tags: Sequence[TagSuggestion]) -> Sequence[Tag]:  # pragma: no cover
        """Delete all tags of the note, then insert `tags`.

        The delete must complete before the insert starts.
        """

    @abstractmethod
    async def delete_ids(self, tag_ids: Iterable[int]) -> int:  # pragma: no cover
        """Delete rows by id and return how many were removed."""

    @abstractmethod
    async def rename(self, names: Iterable[str], new_name: str) -> Sequence[Tag]:  # pragma: no cover
        """Bulk-rename every row named in `names` and return the updated rows."""
