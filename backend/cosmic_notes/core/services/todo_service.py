from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.errors import NotFoundError
from cosmic_notes.core.models.todo import TodoDraft

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from cosmic_notes.core.models.todo import TodoItem
    from cosmic_notes.core.repositories.todo_repository import TodoRepository


class TodoService:
    """Plain CRUD for checklist items attached to a tag family."""

    def __init__(self, repo: TodoRepository) -> None:
        self._repo = repo

    async def list_todos(self, tag_family: str | None = None) -> Sequence[TodoItem]:
        return await self._repo.list(tag_family=tag_family)

    async def create_todo(self, tag_family: str, text: str, user_id: UUID) -> TodoItem:
        return await self._repo.create(TodoDraft(tag_family=tag_family, text=text, user_id=user_id))

    async def update_todo(self, todo_id: int, *, text: str | None = None, done: bool | None = None) -> TodoItem:
        changes = {k: v for k, v in {"text": text, "done": done}.items() if v is not None}
        todo = await self._repo.update_fields(todo_id, changes)
        if todo is None:
            raise NotFoundError("Todo item not found", {"todo_id": todo_id})
        return todo

    async def delete_todo(self, todo_id: int) -> None:
        if not await self._repo.delete(todo_id):
            raise NotFoundError("Todo item not found", {"todo_id": todo_id})
