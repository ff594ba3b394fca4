from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cosmic_notes.core.models.todo import TodoItem
from cosmic_notes.core.repositories.implementations.supabase.base import SupabaseRepository
from cosmic_notes.core.repositories.todo_repository import TodoRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.todo import TodoDraft


class SupabaseTodoRepository(SupabaseRepository, TodoRepository):
    TABLE_NAME = "todo_items"

    async def list(self, *, tag_family: str | None = None) -> Sequence[TodoItem]:
        def _query():
            q = self._table().select("*")
            if tag_family is not None:
                q = q.eq("tag_family", tag_family)
            return q.order("created_at").execute()

        resp = await self._run(_query)
        return [TodoItem.model_validate(r) for r in resp.data or []]

    async def create(self, draft: TodoDraft) -> TodoItem:
        row = draft.model_dump(mode="json")
        resp = await self._run(lambda: self._table().insert(row).execute())
        return TodoItem.model_validate(self._first(resp.data))

    async def update_fields(self, todo_id: int, changes: dict[str, Any]) -> TodoItem | None:
        sanitized = {k: v for k, v in (changes or {}).items() if k in {"text", "done"}}
        if not sanitized:
            resp = await self._run(lambda: self._table().select("*").eq("id", todo_id).execute())
        else:
            sanitized["updated_at"] = self._now()
            resp = await self._run(
                lambda: self._table().update(sanitized).eq("id", todo_id).execute()
            )
        items = resp.data or []
        return TodoItem.model_validate(items[0]) if items else None

    async def delete(self, todo_id: int) -> bool:
        resp = await self._run(lambda: self._table().delete().eq("id", todo_id).execute())
        return len(resp.data or []) > 0

    async def rename_family(self, old_names: Sequence[str], new_name: str) -> int:
        names = sorted(set(old_names))
        if not names:
            return 0
        resp = await self._run(
            lambda: self._table().update({"tag_family": new_name}).in_("tag_family", names).execute()
        )
        return len(resp.data or [])
