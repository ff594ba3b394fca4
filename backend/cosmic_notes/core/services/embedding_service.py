from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client
from cosmic_notes.utils.text import sanitize_text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from openai import AsyncOpenAI

logger = get_logger(__name__)

# text-embedding-3 accepts ~8k tokens; characters are a cheap upper bound
MAX_EMBEDDING_CHARS = 24000


def build_note_text(title: str | None, content: str | None, tags: Iterable[str] = ()) -> str:
    """Title, content and tag names joined into the text that gets embedded."""
    parts = [sanitize_text(title).strip(), sanitize_text(content).strip()]
    names = ", ".join(t for t in tags if t)
    if names:
        parts.append(f"Tags: {names}")
    return "\n\n".join(p for p in parts if p)[:MAX_EMBEDDING_CHARS]


async def create_embedding(input_text: str, *, client: AsyncOpenAI | None = None) -> list[float] | None:
    """Embed `input_text`; None for empty input or when the API call fails."""
    if not input_text or not input_text.strip():
        return None

    try:
        resp = await (client or get_openai_client()).embeddings.create(
            model=settings.embedding_model,
            input=input_text,
        )
    except Exception as err:
        logger.error(
            "Failed to create embedding: %s",
            err,
            extra={"model": settings.embedding_model, "error_type": type(err).__name__},
        )
        return None
    return resp.data[0].embedding
