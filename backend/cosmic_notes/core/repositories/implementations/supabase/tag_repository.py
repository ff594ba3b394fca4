from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.tag import Tag
from cosmic_notes.core.repositories.implementations.supabase.base import SupabaseRepository
from cosmic_notes.core.repositories.tag_repository import TagRepository

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from cosmic_notes.core.schemas.tagging import TagSuggestion


class SupabaseTagRepository(SupabaseRepository, TagRepository):
    """Supabase implementation of the TagRepository.

    Assumes a `tags` table with a unique (note_id, name) constraint, a foreign
    key to `notes` with ON DELETE CASCADE and `user_id` defaulting to auth.uid().
    """

    TABLE_NAME = "tags"
    _TAG_COLUMNS = set(Tag.model_fields)

    async def get(self, tag_id: int) -> Tag | None:
        resp = await self._run(
            lambda: self._table().select("*").eq("id", tag_id).limit(1).execute()
        )
        items = resp.data or []
        return self._row_to_tag(items[0]) if items else None

    async def list_all(self) -> Sequence[Tag]:
        page_size = 1000
        offset = 0
        tags: list[Tag] = []
        while True:
            start = offset

            def _fetch_page() -> Any:
                return (
                    self._table()
                    .select("*")
                    .order("id")
                    .range(start, start + page_size - 1)
                    .execute()
                )

            resp = await self._run(_fetch_page)
            rows: list[dict[str, Any]] = resp.data or []
            tags.extend(self._row_to_tag(r) for r in rows)
            if len(rows) < page_size:
                break
            offset += page_size
        return tags

    async def list_for_note(self, note_id: int) -> Sequence[Tag]:
        resp = await self._run(
            lambda: self._table().select("*").eq("note_id", note_id).order("name").execute()
        )
        return [self._row_to_tag(r) for r in resp.data or []]

    async def list_for_notes(self, note_ids: Iterable[int]) -> Sequence[Tag]:
        ids = sorted(set(note_ids))
        if not ids:
            return []
        resp = await self._run(
            lambda: self._table().select("*").in_("note_id", ids).order("name").execute()
        )
        return [self._row_to_tag(r) for r in resp.data or []]

    async def list_by_names(self, names: Iterable[str]) -> Sequence[Tag]:
        wanted = sorted(set(names))
        if not wanted:
            return []
        resp = await self._run(
            lambda: self._table().select("*").in_("name", wanted).order("note_id").execute()
        )
        return [self._row_to_tag(r) for r in resp.data or []]

    async def replace_for_note(self, note_id: int, tags: Sequence[TagSuggestion]) -> Sequence[Tag]:
        await self._run(lambda: self._table().delete().eq("note_id", note_id).execute())

        if not tags:
            return []
        rows = [
            {"note_id": note_id, "name": t.name, "confidence": t.confidence}
            for t in tags
        ]
        resp = await self._run(lambda: self._table().insert(rows).execute())
        return [self._row_to_tag(r) for r in resp.data or []]

    async def delete_ids(self, tag_ids: Iterable[int]) -> int:
        ids = sorted(set(tag_ids))
        if not ids:
            return 0
        resp = await self._run(lambda: self._table().delete().in_("id", ids).execute())
        return len(resp.data or [])

    async def rename(self, names: Iterable[str], new_name: str) -> Sequence[Tag]:
        old = sorted(set(names))
        if not old:
            return []
        resp = await self._run(
            lambda: self._table().update({"name": new_name}).in_("name", old).execute()
        )
        return [self._row_to_tag(r) for r in resp.data or []]

    @classmethod
    def _row_to_tag(cls, row: dict[str, Any]) -> Tag:
        normalized = cls._strip_columns(row, cls._TAG_COLUMNS)
        if normalized.get("confidence") is None:
            normalized["confidence"] = 1.0
        return Tag.model_validate(normalized)
