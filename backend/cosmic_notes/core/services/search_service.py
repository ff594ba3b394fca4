from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ApplicationError, UserError
from cosmic_notes.core.schemas.note_search import NoteSearchResult
from cosmic_notes.core.services.embedding_service import create_embedding
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openai import AsyncOpenAI

    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.schemas.note_search import NoteSearchQuery

logger = get_logger(__name__)


class SearchService:
    """Service for searching notes.

    Keeps application logic (validation, defaults) outside transport layer.
    """

    def __init__(self, repo: NoteRepository, tags: TagRepository, *, client: AsyncOpenAI | None = None) -> None:
        self._repo = repo
        self._tags = tags
        self._client = client

    async def _attach_tags(self, results: list[NoteSearchResult]) -> list[NoteSearchResult]:
        rows = await self._tags.list_for_notes(r.id for r in results)
        names: dict[int, list[str]] = {}
        for row in rows:
            names.setdefault(row.note_id, []).append(row.name)
        return [r.model_copy(update={"tags": names.get(r.id, [])}) for r in results]

    async def search_notes(self, request: NoteSearchQuery) -> Sequence[NoteSearchResult]:
        """Case-insensitive match on title and content, newest first."""
        notes = await self._repo.search(
            query=request.query,
            category=request.category,
            zone=request.zone.strip().lower() if request.zone else None,
            limit=request.limit,
        )
        results = [NoteSearchResult.model_validate(n.model_dump(exclude={"chat_history"})) for n in notes]
        return await self._attach_tags(results)

    async def semantic_search(self, request: NoteSearchQuery) -> Sequence[NoteSearchResult]:
        """Rank notes by embedding similarity to the query, most similar first."""
        query = (request.query or "").strip()
        if not query:
            raise UserError("A query is required for semantic search")

        embedding = await create_embedding(query, client=self._client)
        if not embedding:
            raise ApplicationError("Failed to embed search query")

        matches = await self._repo.match(
            embedding=embedding,
            threshold=settings.semantic_match_threshold,
            count=max(request.limit, settings.semantic_match_count),
        )
        zone = request.zone.strip().lower() if request.zone else None
        filtered = [
            m for m in matches
            if (request.category is None or m.category == request.category)
            and (zone is None or m.zone == zone)
        ]
        filtered.sort(key=lambda m: m.rank, reverse=True)
        logger.debug("Semantic search matched %d notes", len(filtered))
        return await self._attach_tags(filtered[: request.limit])
