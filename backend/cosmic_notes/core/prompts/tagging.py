from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.core.models.note import NoteCategory

if TYPE_CHECKING:
    from collections.abc import Sequence

MAX_VOCABULARY = 200

TAGGING_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts relevant organizational tags from a personal note.\n"
    "- Return JSON only, matching the provided schema.\n"
    "- Tags are short PascalCase nouns or noun phrases; never sentences.\n"
    "- Give every tag a confidence between 0 and 1.\n"
)

_CATEGORY_GUIDELINES: dict[NoteCategory, str] = {
    NoteCategory.TODO: (
        "The note is a to-do list. Tag the area of life or project the tasks belong to "
        "(e.g. Groceries, HomeRepair, Taxes), not the individual verbs."
    ),
    NoteCategory.COLLECTION: (
        "The note collects related items. Tag what is being collected (e.g. Books, GiftIdeas, Recipes)."
    ),
    NoteCategory.FEEDBACK: (
        "The note holds feedback. Tag the product, service or person the feedback is about, "
        "and the feature area if one is named."
    ),
    NoteCategory.BRAINSTORM: (
        "The note is a brainstorm. Tag the product or problem the ideas are for."
    ),
    NoteCategory.JOURNAL: (
        "The note is a journal entry. Tag recurring life themes (e.g. Health, Family, Work), "
        "never the date."
    ),
    NoteCategory.MEETING: (
        "The note records a meeting. Tag the project, team or counterpart of the meeting."
    ),
    NoteCategory.RESEARCH: (
        "The note holds research. Tag the research subject and field."
    ),
    NoteCategory.LEARNING: (
        "The note holds study notes. Tag the course or subject being learned."
    ),
    NoteCategory.SCRATCHPAD: (
        "The note is a loose scratchpad. Tag only themes that are clearly present."
    ),
}


def build_tagging_prompt(
    content: str,
    category: NoteCategory,
    vocabulary: Sequence[str] = (),
) -> tuple[str, str]:
    """Return (system, user) prompts for tagging a note of `category`.

    `vocabulary` lists tag names already in use, most used first; the model is
    asked to reuse one of them before inventing a near-duplicate.
    """
    system = TAGGING_SYSTEM_PROMPT
    if vocabulary:
        system += "- Prefer reusing a tag from tag_vocab; only propose a new tag if none of them fits.\n"
    system += "\n" + _CATEGORY_GUIDELINES.get(category, "")
    prompt = (
        "Identify 1-3 tags that best describe the content. "
        "Include one broader and one more specific tag where it makes sense.\n\n"
        f"Content: {content}"
    )
    if vocabulary:
        prompt += "\n\ntag_vocab: " + ", ".join(vocabulary[:MAX_VOCABULARY])
    return system, prompt
