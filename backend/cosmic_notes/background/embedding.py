from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from cosmic_notes.core.repositories.implementations.supabase.tag_repository import SupabaseTagRepository
from cosmic_notes.core.services.embedding_service import build_note_text, create_embedding
from cosmic_notes.db.base import get_supabase_admin_client
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fastapi import BackgroundTasks

    from cosmic_notes.core.models.note import Note

logger = get_logger(__name__)


async def generate_and_store_note_embedding(*, note_id: int, title: str | None, content: str | None) -> None:
    """Embed a saved note with its current tags and store the vector used by semantic search.

    Runs after the response is sent, with the admin client since the request's
    bearer may already be gone. Errors are logged; a stale embedding only
    degrades semantic ranking.
    """
    admin = get_supabase_admin_client()
    try:
        tags = await SupabaseTagRepository(admin).list_for_note(note_id)
        text = build_note_text(title, content, (t.name for t in tags))
        if not text:
            logger.warning("No text content to embed", extra={"note_id": note_id})
            return

        vector = await create_embedding(text)
        if not vector:
            logger.warning("Failed to generate embedding", extra={"note_id": note_id})
            return

        await SupabaseNoteRepository(admin).set_embedding(note_id, vector)
        logger.debug("Stored embedding", extra={"note_id": note_id, "dimensions": len(vector)})
    except Exception as err:
        logger.error("Embedding job failed: %s", err, extra={"note_id": note_id, "error_type": type(err).__name__})


def schedule_note_embeddings(background_tasks: BackgroundTasks, notes: Iterable[Note]) -> None:
    """Queue a re-embed for each note once the response is sent."""
    for note in notes:
        background_tasks.add_task(
            generate_and_store_note_embedding,
            note_id=note.id,
            title=note.title,
            content=note.content,
        )
