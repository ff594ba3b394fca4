from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.models.review import WeeklyReview
from cosmic_notes.core.repositories.implementations.supabase.base import SupabaseRepository
from cosmic_notes.core.repositories.review_repository import ReviewRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.review import ReviewDraft


class SupabaseReviewRepository(SupabaseRepository, ReviewRepository):
    TABLE_NAME = "weekly_reviews"

    async def create(self, draft: ReviewDraft) -> WeeklyReview:
        row = draft.model_dump(mode="json")
        resp = await self._run(lambda: self._table().insert(row).execute())
        return WeeklyReview.model_validate(self._first(resp.data))

    async def get(self, review_id: int) -> WeeklyReview | None:
        resp = await self._run(lambda: self._table().select("*").eq("id", review_id).limit(1).execute())
        items = resp.data or []
        return WeeklyReview.model_validate(items[0]) if items else None

    async def latest(self) -> WeeklyReview | None:
        resp = await self._run(
            lambda: self._table().select("*").order("created_at", desc=True).limit(1).execute()
        )
        items = resp.data or []
        return WeeklyReview.model_validate(items[0]) if items else None

    async def list_page(self, *, limit: int, offset: int) -> tuple[Sequence[WeeklyReview], int]:
        resp = await self._run(
            lambda: self._table()
            .select("*", count="exact")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        reviews = [WeeklyReview.model_validate(r) for r in resp.data or []]
        return reviews, resp.count or 0

    async def delete(self, review_id: int) -> bool:
        resp = await self._run(lambda: self._table().delete().eq("id", review_id).execute())
        return len(resp.data or []) > 0
