from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from supabase import Client


class SupabaseRepository:
    """Shared plumbing for PostgREST-backed repositories.

    The sync Supabase client is driven from a worker thread so repository
    methods stay awaitable.
    """

    TABLE_NAME: str = ""

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    def _table(self) -> Any:
        return self._client.table(self.TABLE_NAME)

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        return await asyncio.to_thread(func)

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _now() -> str:
        return datetime.now(UTC).isoformat()

    @staticmethod
    def _strip_columns(row: dict[str, Any], allowed: set[str]) -> dict[str, Any]:
        """Drop database-only columns (embedding, lexeme, ...) before validation."""
        return {k: v for k, v in row.items() if k in allowed}
