from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.review import ReviewDraft, WeeklyReview


class ReviewRepository(ABC):
    """Abstract repository for stored weekly reviews."""

    @abstractmethod
    async def create(self, draft: ReviewDraft) -> WeeklyReview: ...

    @abstractmethod
    async def get(self, review_id: int) -> WeeklyReview | None: ...

    @abstractmethod
    async def latest(self) -> WeeklyReview | None: ...

    @abstractmethod
    async def list_page(self, *, limit: int, offset: int) -> tuple[Sequence[WeeklyReview], int]:
        """Return one page of reviews, newest first, and the total number of reviews."""

    @abstractmethod
    async def delete(self, review_id: int) -> bool: ...
