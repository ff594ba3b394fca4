from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.todo import TodoDraft, TodoItem


class TodoRepository(ABC):
    """Abstract repository for todo items attached to tag families."""

    @abstractmethod
    async def list(self, *, tag_family: str | None = None) -> Sequence[TodoItem]: ...

    @abstractmethod
    async def create(self, draft: TodoDraft) -> TodoItem: ...

    @abstractmethod
    async def update_fields(self, todo_id: int, changes: dict[str, Any]) -> TodoItem | None: ...

    @abstractmethod
    async def delete(self, todo_id: int) -> bool: ...

    @abstractmethod
    async def rename_family(self, old_names: Sequence[str], new_name: str) -> int:
        """Move todos of merged tag families onto the surviving family."""
