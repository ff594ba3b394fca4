from __future__ import annotations

import re
from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ExtractionError, UserError
from cosmic_notes.core.models.note import DEFAULT_CATEGORY, NoteCategory
from cosmic_notes.core.prompts.tagging import build_tagging_prompt
from cosmic_notes.core.schemas.tagging import TagExtractionOutput, TagSuggestion
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client, parse_structured
from cosmic_notes.utils.text import capitalize_tag

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from openai import AsyncOpenAI

logger = get_logger(__name__)

_HASHTAG = re.compile(r"(?<![\w#])#([A-Za-z][\w-]{0,99})")


def find_hashtags(content: str) -> list[str]:
    """Return capitalized `#hashtag` names in order of first appearance."""
    names: list[str] = []
    for match in _HASHTAG.finditer(content or ""):
        name = capitalize_tag(match.group(1).rstrip("-"))
        if name and name not in names:
            names.append(name)
    return names


def apply_denylist(tags: Iterable[TagSuggestion], denylist: Sequence[str] | None = None) -> list[TagSuggestion]:
    """Drop tags whose name equals or contains a denylisted token (case-insensitive)."""
    tokens = [t.lower() for t in (settings.tag_denylist if denylist is None else denylist) if t]
    kept: list[TagSuggestion] = []
    for tag in tags:
        lowered = tag.name.lower()
        if any(token in lowered for token in tokens):
            logger.debug("Dropping denylisted tag %s", tag.name)
            continue
        kept.append(tag)
    return kept


def _dedupe(tags: Iterable[TagSuggestion]) -> list[TagSuggestion]:
    best: dict[str, TagSuggestion] = {}
    for tag in tags:
        current = best.get(tag.name)
        if current is None or tag.confidence > current.confidence:
            best[tag.name] = tag
    return sorted(best.values(), key=lambda t: (-t.confidence, t.name))


async def extract_tags(
    content: str,
    category: NoteCategory | None = None,
    confidence_threshold: float | None = None,
    *,
    vocabulary: Sequence[str] | None = None,
    client: AsyncOpenAI | None = None,
) -> list[TagSuggestion]:
    """Extract tags for `content` using a category-specific prompt.

    Hashtags written in the content are kept with confidence 1.0. Model tags are
    capitalized, deduplicated on their highest confidence, filtered through the
    denylist and finally the confidence threshold. The result is sorted by
    confidence, highest first.

    `vocabulary` only shapes the prompt: tag names already in use that the
    model should reuse when one fits. Nothing is read or written here.

    Raises:
        UserError: when `content` is blank.
        ExtractionError: when the model fails, refuses or returns unusable output.
    """
    if not content or not content.strip():
        raise UserError("Content is required to generate tags")

    category = category or DEFAULT_CATEGORY
    threshold = settings.tag_confidence_threshold if confidence_threshold is None else confidence_threshold
    system, prompt = build_tagging_prompt(content, category, vocabulary or ())

    logger.info("Extracting tags", extra={"category": category.value, "content_length": len(content)})
    try:
        output = await parse_structured(
            client or get_openai_client(),
            model=settings.tagging_model,
            system=system,
            prompt=prompt,
            schema=TagExtractionOutput,
        )
    except Exception as err:
        logger.error(
            "Tag extraction failed: %s",
            err,
            extra={"category": category.value, "error_type": type(err).__name__},
        )
        raise ExtractionError(
            "Failed to generate tags",
            {"category": category.value, "error": str(err)},
        ) from err

    candidates = [TagSuggestion(name=name, confidence=1.0) for name in find_hashtags(content)]
    for item in output.tags:
        name = capitalize_tag(item.tag)[:100]
        if name:
            candidates.append(TagSuggestion(name=name, confidence=item.confidence))

    tags = [t for t in apply_denylist(_dedupe(candidates)) if t.confidence >= threshold]
    logger.debug("Extracted tags: %s", [t.name for t in tags])
    return tags
