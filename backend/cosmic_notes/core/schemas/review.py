from __future__ import annotations

from pydantic import Field

from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.review import WeeklyReview  # noqa: TCH001


class WeeklyReviewOutput(AppBaseModel):
    review: str = Field(description="A review of the user's notes from the past week, formatted in markdown")


class ReviewPage(AppBaseModel):
    reviews: list[WeeklyReview] = Field(default_factory=list)
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_more: bool
