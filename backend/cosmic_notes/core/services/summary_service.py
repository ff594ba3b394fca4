from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ApplicationError
from cosmic_notes.core.prompts.summary import build_summary_prompt
from cosmic_notes.core.schemas.tagging import ClusterSummaryOutput
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client, parse_structured
from cosmic_notes.utils.text import linkify_summary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.note import Note, NoteCategory

logger = get_logger(__name__)


async def generate_cluster_summary(
    notes: Sequence[Note],
    category: NoteCategory,
    tag_name: str,
    *,
    client: AsyncOpenAI | None = None,
) -> str:
    """Summarize the member notes of one cluster and linkify note references."""
    ordered = sorted(notes, key=lambda n: n.id)
    system, prompt = build_summary_prompt(ordered, category, tag_name)
    context = {"tag_name": tag_name, "category": category.value, "note_count": len(ordered)}

    try:
        output = await parse_structured(
            client or get_openai_client(),
            model=settings.summary_model,
            system=system,
            prompt=prompt,
            schema=ClusterSummaryOutput,
        )
    except Exception as err:
        logger.error("Cluster summary failed: %s", err, extra={**context, "error_type": type(err).__name__})
        raise ApplicationError("Failed to generate cluster summary", {**context, "error": str(err)}) from err

    summary = output.summary.strip()
    if not summary:
        logger.error("Cluster summary was empty", extra=context)
        raise ApplicationError("Failed to generate cluster summary", context)
    return linkify_summary(summary)
