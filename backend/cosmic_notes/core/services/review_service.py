from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ApplicationError, NotFoundError
from cosmic_notes.core.models.review import ReviewDraft
from cosmic_notes.core.prompts.review import build_review_prompt
from cosmic_notes.core.schemas.review import ReviewPage, WeeklyReviewOutput
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client, parse_structured
from cosmic_notes.utils.text import linkify_summary

if TYPE_CHECKING:
    from uuid import UUID

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.review import WeeklyReview
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.review_repository import ReviewRepository

logger = get_logger(__name__)


class ReviewService:
    """Generates, stores and reads weekly reviews of recent notes."""

    def __init__(
        self,
        notes: NoteRepository,
        reviews: ReviewRepository,
        *,
        client: AsyncOpenAI | None = None,
        window_days: int | None = None,
    ) -> None:
        self._notes = notes
        self._reviews = reviews
        self._client = client
        self._window = timedelta(days=window_days or settings.review_window_days)

    async def generate_weekly_review(self, user_id: UUID, *, now: datetime | None = None) -> WeeklyReview:
        """Review the notes created in the last window and store the result.

        Raises:
            NotFoundError: when no note was created in the window.
            ApplicationError: when the model fails or returns an empty review.
        """
        end = now or datetime.now(UTC)
        start = end - self._window
        notes = await self._notes.list_created_between(start, end)
        if not notes:
            raise NotFoundError(
                "No notes found from the past week to generate a review",
                {"period_start": start.isoformat(), "period_end": end.isoformat()},
            )

        context = {"note_count": len(notes)}
        system, prompt = build_review_prompt(notes)
        try:
            output = await parse_structured(
                self._client or get_openai_client(),
                model=settings.review_model,
                system=system,
                prompt=prompt,
                schema=WeeklyReviewOutput,
            )
        except Exception as err:
            logger.error("Weekly review failed: %s", err, extra={**context, "error_type": type(err).__name__})
            raise ApplicationError("Failed to generate weekly review", {**context, "error": str(err)}) from err

        text = output.review.strip()
        if not text:
            logger.error("Weekly review was empty", extra=context)
            raise ApplicationError("Failed to generate weekly review", context)

        review = await self._reviews.create(
            ReviewDraft(
                review=linkify_summary(text),
                note_count=len(notes),
                period_start=start,
                period_end=end,
                user_id=user_id,
            )
        )
        logger.info("Stored weekly review", extra={"review_id": review.id, **context})
        return review

    async def latest_review(self) -> WeeklyReview:
        review = await self._reviews.latest()
        if review is None:
            raise NotFoundError("No weekly reviews found")
        return review

    async def get_review(self, review_id: int) -> WeeklyReview:
        review = await self._reviews.get(review_id)
        if review is None:
            raise NotFoundError("Review not found", {"review_id": review_id})
        return review

    async def list_reviews(self, *, page: int = 1, limit: int = 10) -> ReviewPage:
        reviews, total = await self._reviews.list_page(limit=limit, offset=(page - 1) * limit)
        total_pages = math.ceil(total / limit)
        return ReviewPage(
            reviews=list(reviews),
            page=page,
            limit=limit,
            total_count=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        )

    async def delete_review(self, review_id: int) -> None:
        if not await self._reviews.delete(review_id):
            raise NotFoundError("Review not found", {"review_id": review_id})
