from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from cosmic_notes.api.v1.schemas.note import ChatHistoryUpdate  # noqa: TCH001
from cosmic_notes.api.v1.schemas.tags import GenerateClusterRequest  # noqa: TCH001
from cosmic_notes.core.models.cluster import Cluster
from cosmic_notes.core.models.note import NoteCategory  # noqa: TCH001
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.schemas.cluster import ClusterWithNotes
from cosmic_notes.core.services.cluster_service import ClusterService  # noqa: TCH001
from cosmic_notes.dependencies import get_cluster_service, get_current_user

router = APIRouter()


@router.get("/", response_model=list[Cluster])
async def list_clusters(
    tag_family: str | None = None,
    category: NoteCategory | None = None,
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: AuthUser = Depends(get_current_user),
    service: ClusterService = Depends(get_cluster_service),
):
    return await service.list_clusters(tag_family=tag_family, category=category, limit=limit, offset=offset)


@router.post("/generate", response_model=Cluster | None)
async def generate_cluster(
    payload: GenerateClusterRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: ClusterService = Depends(get_cluster_service),
):
    """Create, refresh or delete the cluster of one tag in one category.

    Returns null when fewer than two notes of the category carry the tag.
    """
    return await service.generate_cluster_for_category(
        payload.category,
        force_refresh=payload.force_refresh,
        tag_name=payload.tag_name,
        tag_id=payload.tag_id,
    )


@router.get("/{cluster_id}", response_model=ClusterWithNotes)
async def get_cluster(
    cluster_id: int,
    current_user: AuthUser = Depends(get_current_user),
    service: ClusterService = Depends(get_cluster_service),
):
    return await service.get_cluster(cluster_id)


@router.put("/{cluster_id}/chat-history", response_model=Cluster)
async def update_cluster_chat_history(
    cluster_id: int,
    payload: ChatHistoryUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: ClusterService = Depends(get_cluster_service),
):
    return await service.update_chat_history(cluster_id, payload.messages)
