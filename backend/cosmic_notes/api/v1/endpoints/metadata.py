from __future__ import annotations

from fastapi import APIRouter, Depends

from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.schemas.taxonomy import NoteTaxonomy
from cosmic_notes.core.services.tag_service import TagService  # noqa: TCH001
from cosmic_notes.dependencies import get_current_user, get_tag_service

router = APIRouter()


@router.get("/categories", response_model=list[str])
async def list_categories() -> list[str]:
    """Return every note category; the order matches the classification prompt."""
    return [c.value for c in NoteCategory]


@router.get("/taxonomy", response_model=NoteTaxonomy)
async def get_taxonomy(
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """Return the distinct tag names visible to the caller."""
    return await service.get_taxonomy()
