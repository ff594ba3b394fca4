from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cosmic_notes.core.repositories.implementations.supabase.cluster_repository import SupabaseClusterRepository
from cosmic_notes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from cosmic_notes.core.repositories.implementations.supabase.review_repository import SupabaseReviewRepository
from cosmic_notes.core.repositories.implementations.supabase.tag_repository import SupabaseTagRepository
from cosmic_notes.core.repositories.implementations.supabase.todo_repository import SupabaseTodoRepository
from cosmic_notes.core.schemas.auth import AuthUser
from cosmic_notes.core.services.agent_service import AgentService
from cosmic_notes.core.services.cluster_service import ClusterService
from cosmic_notes.core.services.lifecycle_service import NoteLifecycleService
from cosmic_notes.core.services.note_service import NoteService
from cosmic_notes.core.services.review_service import ReviewService
from cosmic_notes.core.services.search_service import SearchService
from cosmic_notes.core.services.tag_service import TagService
from cosmic_notes.core.services.todo_service import TodoService
from cosmic_notes.db.base import create_request_supabase_client
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client

logger = get_logger(__name__)

# Use auto_error=False to handle missing tokens gracefully
http_bearer = HTTPBearer(auto_error=False)

if TYPE_CHECKING:
    from supabase import Client

    from cosmic_notes.core.repositories.cluster_repository import ClusterRepository
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.review_repository import ReviewRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.repositories.todo_repository import TodoRepository


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_request_supabase_client(request: Request) -> Client:
    """Create a request-scoped Supabase client and set PostgREST bearer.

    Extracts the Authorization: Bearer <jwt> header if present and configures
    PostgREST to enforce RLS for the user.
    """
    auth_header = request.headers.get("authorization")
    jwt: str | None = None
    if auth_header and auth_header.lower().startswith("bearer "):
        jwt = auth_header.split(" ", 1)[1].strip()
    return create_request_supabase_client(jwt)


def get_note_repository(client: Client = Depends(get_request_supabase_client)) -> NoteRepository:
    return SupabaseNoteRepository(client)


def get_tag_repository(client: Client = Depends(get_request_supabase_client)) -> TagRepository:
    return SupabaseTagRepository(client)


def get_cluster_repository(client: Client = Depends(get_request_supabase_client)) -> ClusterRepository:
    return SupabaseClusterRepository(client)


def get_todo_repository(client: Client = Depends(get_request_supabase_client)) -> TodoRepository:
    return SupabaseTodoRepository(client)


def get_review_repository(client: Client = Depends(get_request_supabase_client)) -> ReviewRepository:
    return SupabaseReviewRepository(client)


def get_note_service(
    repo: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
) -> NoteService:
    return NoteService(repo, tags)


def get_search_service(
    repo: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
) -> SearchService:
    return SearchService(repo, tags, client=get_openai_client())


def get_cluster_service(
    notes: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
    clusters: ClusterRepository = Depends(get_cluster_repository),
) -> ClusterService:
    return ClusterService(notes, tags, clusters, client=get_openai_client())


def get_lifecycle_service(
    notes: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
    cluster_service: ClusterService = Depends(get_cluster_service),
) -> NoteLifecycleService:
    """Lifecycle coordinator sharing the request's repositories with the cluster builder."""
    return NoteLifecycleService(notes, tags, cluster_service, client=get_openai_client())


def get_tag_service(
    notes: NoteRepository = Depends(get_note_repository),
    tags: TagRepository = Depends(get_tag_repository),
    clusters: ClusterRepository = Depends(get_cluster_repository),
    todos: TodoRepository = Depends(get_todo_repository),
    cluster_service: ClusterService = Depends(get_cluster_service),
) -> TagService:
    return TagService(notes, tags, clusters, todos, cluster_service, client=get_openai_client())


def get_todo_service(repo: TodoRepository = Depends(get_todo_repository)) -> TodoService:
    return TodoService(repo)


def get_review_service(
    notes: NoteRepository = Depends(get_note_repository),
    reviews: ReviewRepository = Depends(get_review_repository),
) -> ReviewService:
    return ReviewService(notes, reviews, client=get_openai_client())


def get_agent_service(
    lifecycle: NoteLifecycleService = Depends(get_lifecycle_service),
    search_service: SearchService = Depends(get_search_service),
    cluster_service: ClusterService = Depends(get_cluster_service),
    tag_service: TagService = Depends(get_tag_service),
) -> AgentService:
    """Construct AgentService with shared OpenAI client."""
    return AgentService(lifecycle, search_service, cluster_service, tag_service, get_openai_client())


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser:
    """Validate the bearer JWT with Supabase Auth and return the caller."""
    if not credentials:
        raise _unauthorized("Authentication required")
    jwt = credentials.credentials
    if not jwt or len(jwt.split(".")) != 3:
        raise _unauthorized("Invalid token format")

    supabase = create_request_supabase_client(jwt)
    try:
        resp = await asyncio.to_thread(lambda: supabase.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
            },
        )
        if "invalid" in error_msg or "expired" in error_msg:
            raise _unauthorized("Token is invalid or expired") from err
        raise _unauthorized("Authentication failed") from err

    user = getattr(resp, "user", None)
    user_id = getattr(user, "id", None)
    if not user_id:
        raise _unauthorized("Invalid user data")
    return AuthUser(id=user_id, email=getattr(user, "email", None), role=getattr(user, "role", None))
