from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class NoteLockRegistry:
    """In-process `asyncio.Lock` per note id.

    Mutations of the same note run one at a time; different notes proceed in
    parallel. Entries are dropped once no task holds or awaits them.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._waiters: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, note_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(note_id, asyncio.Lock())
        self._waiters[note_id] = self._waiters.get(note_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[note_id] -= 1
            if self._waiters[note_id] == 0:
                del self._waiters[note_id]
                del self._locks[note_id]


note_locks = NoteLockRegistry()
