from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends

from cosmic_notes.api.v1.schemas.tags import (
    GenerateClustersRequest,
    MergeTagsRequest,
    MergeTagsResponse,
    RefineTagsResponse,
)
from cosmic_notes.background import schedule_note_embeddings
from cosmic_notes.core.models.cluster import Cluster
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.schemas.taxonomy import TagFamily, TagFamilyDetail
from cosmic_notes.core.services.cluster_service import ClusterService  # noqa: TCH001
from cosmic_notes.core.services.note_service import NoteService  # noqa: TCH001
from cosmic_notes.core.services.tag_service import TagService  # noqa: TCH001
from cosmic_notes.dependencies import get_cluster_service, get_current_user, get_note_service, get_tag_service

router = APIRouter()


@router.get("/families", response_model=list[TagFamily])
async def list_tag_families(
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """Every distinct tag name with its note count and categories, most used first."""
    return await service.list_tag_families()


@router.get("/families/{name}", response_model=TagFamilyDetail)
async def get_tag_family(
    name: str,
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    return await service.get_tag_family(name)


@router.post("/merge", response_model=MergeTagsResponse)
async def merge_tags(
    payload: MergeTagsRequest,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
    notes: NoteService = Depends(get_note_service),
):
    """Fold near-duplicate tag names into a primary name.

    Each group succeeds or fails on its own; see `results[].success`.
    """
    results = await service.merge_tags(payload.merges)
    affected = {note_id for r in results for note_id in r.affected_note_ids}
    if affected:
        # tag names are part of the embedded text
        schedule_note_embeddings(background_tasks, await notes.get_notes(affected))
    return MergeTagsResponse(results=results)


@router.post("/refine", response_model=RefineTagsResponse)
async def refine_tags(
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """Suggest merge groups. Nothing is applied until the client calls `/merge`."""
    return RefineTagsResponse(suggestions=await service.suggest_merges())


@router.post("/{tag_id}/clusters", response_model=list[Cluster])
async def generate_tag_clusters(
    tag_id: int,
    payload: GenerateClustersRequest | None = None,
    current_user: AuthUser = Depends(get_current_user),
    service: ClusterService = Depends(get_cluster_service),
):
    """Build the clusters of one tag in every category it appears in."""
    force_refresh = payload.force_refresh if payload else False
    return await service.generate_all_clusters(tag_id, force_refresh=force_refresh)
