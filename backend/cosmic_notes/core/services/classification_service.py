from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ApplicationError, UserError
from cosmic_notes.core.models.note import DEFAULT_ZONE
from cosmic_notes.core.prompts.classification import (
    CLASSIFICATION_SYSTEM_PROMPT,
    build_classification_prompt,
)
from cosmic_notes.core.schemas.tagging import NoteFields
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client, parse_structured

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = get_logger(__name__)


async def generate_note_fields(content: str, *, client: AsyncOpenAI | None = None) -> NoteFields:
    """Ask the classification model for a title, category and zone.

    Raises ApplicationError when the model call fails; callers decide whether
    that is fatal (refresh) or best-effort (create).
    """
    if not content or not content.strip():
        raise UserError("Content is required to classify a note")

    try:
        fields = await parse_structured(
            client or get_openai_client(),
            model=settings.classification_model,
            system=CLASSIFICATION_SYSTEM_PROMPT,
            prompt=build_classification_prompt(content),
            schema=NoteFields,
        )
    except Exception as err:
        logger.error("Note classification failed: %s", err, extra={"error_type": type(err).__name__})
        raise ApplicationError("Failed to generate note fields", {"error": str(err)}) from err

    result = NoteFields(
        title=fields.title.strip()[:255],
        category=fields.category,
        zone=fields.zone.strip().lower()[:50] or DEFAULT_ZONE,
    )
    logger.info("Classified note", extra={"category": result.category.value, "zone": result.zone})
    return result
