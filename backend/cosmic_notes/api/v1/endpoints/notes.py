from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from cosmic_notes.api.v1.schemas.note import (
    ChatHistoryUpdate,
    NoteMutationResponse,
    NoteRead,
    SaveTagsRequest,
    SuggestTagsRequest,
)
from cosmic_notes.api.v1.schemas.note_search import NoteSearchRequest, NoteSearchResultPublic
from cosmic_notes.background import schedule_note_embeddings
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.schemas.lifecycle import NoteMutationResult  # noqa: TCH001
from cosmic_notes.core.schemas.note_input import NoteCreate, NoteUpdate  # noqa: TCH001
from cosmic_notes.core.schemas.tagging import TagSuggestion
from cosmic_notes.core.services.lifecycle_service import NoteLifecycleService  # noqa: TCH001
from cosmic_notes.core.services.note_service import NoteService  # noqa: TCH001
from cosmic_notes.core.services.search_service import SearchService  # noqa: TCH001
from cosmic_notes.core.services.tag_extraction_service import extract_tags
from cosmic_notes.dependencies import (
    get_current_user,
    get_lifecycle_service,
    get_note_service,
    get_search_service,
)
from cosmic_notes.utils.openai_client import get_openai_client

router = APIRouter()


async def _mutation_response(result: NoteMutationResult, service: NoteService) -> NoteMutationResponse:
    tags = await service.get_note_tags(result.note.id)
    return NoteMutationResponse.from_result(result, tags)


@router.post("/", response_model=NoteMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
    service: NoteService = Depends(get_note_service),
):
    """Create a note, tag it and rebuild the clusters its tags belong to.

    Enrichment failures are reported in `side_effects`; the note is saved regardless.
    """
    result = await lifecycle.create_note(payload, user_id=current_user.id)
    schedule_note_embeddings(background_tasks, [result.note])
    return await _mutation_response(result, service)


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    category: NoteCategory | None = None,
    zone: str | None = None,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    notes = await service.list_notes(limit=limit, offset=offset, category=category, zone=zone)
    tags = await service.tags_by_note([n.id for n in notes])
    return [NoteRead.from_note(n, tags.get(n.id, [])) for n in notes]


@router.post("/suggest-tags", response_model=list[TagSuggestion])
async def suggest_tags(
    payload: SuggestTagsRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    """Generate tags for arbitrary content without saving anything."""
    return await extract_tags(
        payload.content,
        payload.category,
        payload.confidence_threshold,
        client=get_openai_client(),
    )


@router.post("/search", response_model=list[NoteSearchResultPublic])
async def search_notes(
    payload: NoteSearchRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: SearchService = Depends(get_search_service),
):
    """Keyword search over title and content, newest first."""
    results = await service.search_notes(payload.to_query())
    return [NoteSearchResultPublic.model_validate(r) for r in results]


@router.post("/search/semantic", response_model=list[NoteSearchResultPublic])
async def semantic_search_notes(
    payload: NoteSearchRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: SearchService = Depends(get_search_service),
):
    results = await service.semantic_search(payload.to_query())
    return [NoteSearchResultPublic.model_validate(r) for r in results]


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(
    note_id: int,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.get_note(note_id)
    return NoteRead.from_note(note, await service.get_note_tags(note_id))


@router.patch("/{note_id}", response_model=NoteMutationResponse)
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
    service: NoteService = Depends(get_note_service),
):
    result = await lifecycle.update_note(note_id, payload)
    if payload.model_fields_set & {"content", "title", "tags"}:
        schedule_note_embeddings(background_tasks, [result.note])
    return await _mutation_response(result, service)


@router.delete("/{note_id}", response_model=NoteMutationResponse)
async def delete_note(
    note_id: int,
    current_user: AuthUser = Depends(get_current_user),
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
):
    """Delete a note; its tag rows cascade and affected clusters are rebuilt or removed."""
    result = await lifecycle.delete_note(note_id)
    return NoteMutationResponse.from_result(result)


@router.post("/{note_id}/refresh", response_model=NoteMutationResponse)
async def refresh_note(
    note_id: int,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
    service: NoteService = Depends(get_note_service),
):
    """Regenerate title, category, zone and the top tags of a note."""
    result = await lifecycle.refresh_note(note_id)
    schedule_note_embeddings(background_tasks, [result.note])
    return await _mutation_response(result, service)


@router.post("/{note_id}/tags", response_model=NoteMutationResponse)
async def save_note_tags(
    note_id: int,
    payload: SaveTagsRequest,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
    service: NoteService = Depends(get_note_service),
):
    result = await lifecycle.save_tags(note_id, payload.tags)
    schedule_note_embeddings(background_tasks, [result.note])
    return await _mutation_response(result, service)


@router.delete("/{note_id}/tags/{tag}", response_model=NoteMutationResponse)
async def delete_note_tag(
    note_id: int,
    tag: str,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
    service: NoteService = Depends(get_note_service),
):
    """Remove one tag from a note, addressed by name or by tag id."""
    result = await lifecycle.delete_tag_from_note(note_id, tag)
    schedule_note_embeddings(background_tasks, [result.note])
    return await _mutation_response(result, service)


@router.put("/{note_id}/chat-history", response_model=NoteRead)
async def update_note_chat_history(
    note_id: int,
    payload: ChatHistoryUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    note = await service.update_chat_history(note_id, payload.messages)
    return NoteRead.from_note(note, await service.get_note_tags(note_id))
