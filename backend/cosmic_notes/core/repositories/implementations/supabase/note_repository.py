from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.note import Note
from cosmic_notes.core.repositories.implementations.supabase.base import SupabaseRepository
from cosmic_notes.core.repositories.note_repository import NoteRepository
from cosmic_notes.core.schemas.note_search import NoteSearchResult
from cosmic_notes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from cosmic_notes.core.models.note import NoteCategory, NoteDraft

# PostgREST `or` filters are comma separated; these characters would break the expression
_FILTER_UNSAFE = re.compile(r"[,()%*\\]")


class SupabaseNoteRepository(SupabaseRepository, NoteRepository):
    """Supabase implementation of the NoteRepository.

    Assumes a `notes` table whose `id` is an identity column and whose tag rows
    reference it with ON DELETE CASCADE. Semantic search is served by the
    `match_notes` RPC over the pgvector `embedding` column.
    """

    TABLE_NAME = "notes"
    _NOTE_COLUMNS = set(Note.model_fields)

    async def create(self, draft: NoteDraft) -> Note:
        row = draft.model_dump(mode="json")
        row["chat_history"] = []
        resp = await self._run(lambda: self._table().insert(row).execute())
        return self._row_to_note(self._first(resp.data))

    async def get(self, note_id: int) -> Note | None:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .eq("id", note_id)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def list(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        category: NoteCategory | None = None,
        zone: str | None = None,
    ) -> Sequence[Note]:
        def _query():
            q = self._table().select("*")
            if category is not None:
                q = q.eq("category", category.value)
            if zone is not None:
                q = q.eq("zone", zone)
            return (
                q
                .order("updated_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )

        resp = await self._run(_query)
        return [self._row_to_note(i) for i in resp.data or []]

    async def list_by_ids(
        self,
        note_ids: Iterable[int],
        *,
        category: NoteCategory | None = None,
    ) -> Sequence[Note]:
        ids = sorted(set(note_ids))
        if not ids:
            return []

        def _query():
            q = self._table().select("*").in_("id", ids)
            if category is not None:
                q = q.eq("category", category.value)
            return q.order("id").execute()

        resp = await self._run(_query)
        return [self._row_to_note(i) for i in resp.data or []]

    async def list_created_between(self, start: datetime, end: datetime) -> Sequence[Note]:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .gte("created_at", start.isoformat())
            .lte("created_at", end.isoformat())
            .order("created_at", desc=True)
            .execute()
        )
        return [self._row_to_note(i) for i in resp.data or []]

    async def update_fields(self, note_id: int, changes: dict[str, Any]) -> Note | None:
        sanitized: dict[str, Any] = {
            k: v for k, v in (changes or {}).items()
            if k not in {"id", "user_id", "created_at", "updated_at"}
        }
        if not sanitized:
            return await self.get(note_id)

        if "category" in sanitized and hasattr(sanitized["category"], "value"):
            sanitized["category"] = sanitized["category"].value
        sanitized["updated_at"] = self._now()

        resp = await self._run(
            lambda: self._table()
            .update(sanitized)
            .eq("id", note_id)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def delete(self, note_id: int) -> bool:
        resp = await self._run(
            lambda: self._table()
            .delete()
            .eq("id", note_id)
            .execute()
        )
        return len(resp.data or []) > 0

    async def search(
        self,
        *,
        query: str | None,
        category: NoteCategory | None,
        zone: str | None,
        limit: int,
    ) -> Sequence[Note]:
        def _query():
            q = self._table().select("*")
            term = _FILTER_UNSAFE.sub(" ", query or "").strip()
            if term:
                q = q.or_(f"title.ilike.%{term}%,content.ilike.%{term}%")
            if category is not None:
                q = q.eq("category", category.value)
            if zone is not None:
                q = q.eq("zone", zone)
            return q.order("updated_at", desc=True).limit(limit).execute()

        resp = await self._run(_query)
        return [self._row_to_note(i) for i in resp.data or []]

    async def match(
        self,
        *,
        embedding: list[float],
        threshold: float,
        count: int,
    ) -> Sequence[NoteSearchResult]:
        def _rpc():
            params: dict[str, Any] = {
                "query_embedding": embedding,
                "match_threshold": threshold,
                "match_count": count,
            }
            return self._client.rpc("match_notes", params).execute()

        resp = await self._run(_rpc)
        rows: list[dict[str, Any]] = resp.data or []
        return [self._row_to_search_result(r) for r in rows]

    async def set_embedding(self, note_id: int, embedding: list[float]) -> None:
        await self._run(
            lambda: self._table()
            .update({"embedding": embedding})
            .eq("id", note_id)
            .execute()
        )

    @classmethod
    def _row_to_note(cls, row: dict[str, Any]) -> Note:
        normalized = cls._strip_columns(row, cls._NOTE_COLUMNS)
        if normalized.get("chat_history") is None:
            normalized["chat_history"] = []
        if normalized.get("content") is None:
            normalized["content"] = ""
        return Note.model_validate(normalized)

    @staticmethod
    def _row_to_search_result(row: dict[str, Any]) -> NoteSearchResult:
        normalized = SupabaseRepository._strip_columns(row, set(NoteSearchResult.model_fields) | {"similarity"})
        similarity = normalized.pop("similarity", None)
        if similarity is not None and "rank" not in normalized:
            normalized["rank"] = float(similarity)
        if normalized.get("content") is None:
            normalized["content"] = ""
        normalized.setdefault("tags", [])
        return NoteSearchResult.model_validate(normalized)
