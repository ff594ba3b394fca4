from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.errors import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from cosmic_notes.core.models.base import ChatMessage
    from cosmic_notes.core.models.note import Note, NoteCategory
    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository


class NoteService:
    """Read access to notes plus chat-history persistence.

    Row-level security scopes every query to the caller, so ownership is not
    re-checked here. Mutations that affect tags or clusters belong to
    `NoteLifecycleService`.
    """

    def __init__(self, repo: NoteRepository, tags: TagRepository) -> None:
        self._repo = repo
        self._tags = tags

    async def get_note(self, note_id: int) -> Note:
        note = await self._repo.get(note_id)
        if note is None:
            raise NotFoundError("Note not found", {"note_id": note_id})
        return note

    async def get_notes(self, note_ids: Iterable[int]) -> Sequence[Note]:
        return await self._repo.list_by_ids(note_ids)

    async def get_note_tags(self, note_id: int) -> Sequence[Tag]:
        return await self._tags.list_for_note(note_id)

    async def tags_by_note(self, note_ids: Sequence[int]) -> dict[int, list[Tag]]:
        grouped: dict[int, list[Tag]] = {note_id: [] for note_id in note_ids}
        for tag in await self._tags.list_for_notes(note_ids):
            grouped.setdefault(tag.note_id, []).append(tag)
        return grouped

    async def list_notes(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        category: NoteCategory | None = None,
        zone: str | None = None,
    ) -> Sequence[Note]:
        """List notes newest first, optionally filtered by category and zone."""
        return await self._repo.list(
            limit=limit,
            offset=offset,
            category=category,
            zone=zone.strip().lower() if zone else None,
        )

    async def update_chat_history(self, note_id: int, messages: Sequence[ChatMessage]) -> Note:
        note = await self._repo.update_fields(note_id, {"chat_history": [m.model_dump() for m in messages]})
        if note is None:
            raise NotFoundError("Note not found", {"note_id": note_id})
        return note
