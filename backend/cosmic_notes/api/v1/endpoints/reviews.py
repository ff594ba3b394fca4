from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from cosmic_notes.core.models.review import WeeklyReview
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.schemas.review import ReviewPage
from cosmic_notes.core.services.review_service import ReviewService  # noqa: TCH001
from cosmic_notes.dependencies import get_current_user, get_review_service

router = APIRouter()


@router.get("/", response_model=ReviewPage)
async def list_reviews(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return await service.list_reviews(page=page, limit=limit)


@router.post("/week", response_model=WeeklyReview, status_code=status.HTTP_201_CREATED)
async def generate_weekly_review(
    current_user: AuthUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """Review the notes of the past week and store the result.

    404 when no note was written in that period.
    """
    return await service.generate_weekly_review(current_user.id)


@router.get("/week", response_model=WeeklyReview)
async def get_latest_review(
    current_user: AuthUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return await service.latest_review()


@router.get("/{review_id}", response_model=WeeklyReview)
async def get_review(
    review_id: int,
    current_user: AuthUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    return await service.get_review(review_id)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: int,
    current_user: AuthUser = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    await service.delete_review(review_id)
