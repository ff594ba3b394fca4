from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.cluster import Cluster
from cosmic_notes.core.repositories.cluster_repository import ClusterRepository
from cosmic_notes.core.repositories.implementations.supabase.base import SupabaseRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.cluster import ClusterDraft
    from cosmic_notes.core.models.note import NoteCategory


class SupabaseClusterRepository(SupabaseRepository, ClusterRepository):
    """Supabase implementation of the ClusterRepository.

    Assumes a `clusters` table with a unique (user_id, tag_family, category)
    constraint, which the upsert targets.
    """

    TABLE_NAME = "clusters"
    _CLUSTER_COLUMNS = set(Cluster.model_fields)

    async def get(self, cluster_id: int) -> Cluster | None:
        resp = await self._run(
            lambda: self._table().select("*").eq("id", cluster_id).limit(1).execute()
        )
        items = resp.data or []
        return self._row_to_cluster(items[0]) if items else None

    async def get_by_family(self, tag_family: str, category: NoteCategory) -> Cluster | None:
        resp = await self._run(
            lambda: self._table()
            .select("*")
            .eq("tag_family", tag_family)
            .eq("category", category.value)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        return self._row_to_cluster(items[0]) if items else None

    async def list(
        self,
        *,
        tag_family: str | None = None,
        category: NoteCategory | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Cluster]:
        def _query():
            q = self._table().select("*")
            if tag_family is not None:
                q = q.eq("tag_family", tag_family)
            if category is not None:
                q = q.eq("category", category.value)
            return (
                q
                .order("updated_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )

        resp = await self._run(_query)
        return [self._row_to_cluster(r) for r in resp.data or []]

    async def upsert(self, draft: ClusterDraft) -> Cluster:
        row = draft.model_dump(mode="json")
        row["updated_at"] = self._now()
        resp = await self._run(
            lambda: self._table()
            .upsert(row, on_conflict="user_id,tag_family,category")
            .execute()
        )
        return self._row_to_cluster(self._first(resp.data))

    async def update_fields(self, cluster_id: int, changes: dict[str, Any]) -> Cluster | None:
        sanitized = {k: v for k, v in (changes or {}).items() if k not in {"id", "user_id", "created_at"}}
        if not sanitized:
            return await self.get(cluster_id)
        sanitized["updated_at"] = self._now()
        resp = await self._run(
            lambda: self._table().update(sanitized).eq("id", cluster_id).execute()
        )
        items = resp.data or []
        return self._row_to_cluster(items[0]) if items else None

    async def delete_by_family(self, tag_family: str, category: NoteCategory | None = None) -> int:
        def _query():
            q = self._table().delete().eq("tag_family", tag_family)
            if category is not None:
                q = q.eq("category", category.value)
            return q.execute()

        resp = await self._run(_query)
        return len(resp.data or [])

    @classmethod
    def _row_to_cluster(cls, row: dict[str, Any]) -> Cluster:
        normalized = cls._strip_columns(row, cls._CLUSTER_COLUMNS)
        if normalized.get("chat_history") is None:
            normalized["chat_history"] = []
        if normalized.get("summary") is None:
            normalized["summary"] = ""
        return Cluster.model_validate(normalized)
