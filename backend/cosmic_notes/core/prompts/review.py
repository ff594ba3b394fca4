from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note

REVIEW_SYSTEM_PROMPT = (
    "You are a thoughtful assistant that helps the user reflect on their notes from the past week. "
    "Write a helpful summary that identifies themes, patterns and insights.\n\n"
    "# Rules\n"
    "- Cite notes you draw on with their ID in square brackets, e.g. [12].\n"
    "- Do not invent facts, tasks or conclusions that the notes do not support.\n"
    "- Output markdown only."
)


def build_review_prompt(notes: Sequence[Note]) -> tuple[str, str]:
    """Return (system, user) prompts for reviewing `notes`, rendered in the order given."""
    sections = []
    for note in notes:
        sections.append(
            f"## {note.title or 'Untitled'} ({note.category.value}, {note.zone or 'other'})\n"
            f"ID: [{note.id}] Date: {note.created_at.strftime('%m/%d/%y')}\n"
            f"{note.content}"
        )
    prompt = (
        "# Weekly Notes Review\n\n"
        "Below are the notes from the past week:\n\n"
        + "\n\n".join(sections)
        + "\n\n# Instructions\n"
        "1. Identify the main themes across the notes.\n"
        "2. Highlight important insights, patterns or trends.\n"
        "3. Group related topics together under headings, with bullet points where useful.\n"
        "4. Keep the review concise but capture the most valuable information."
    )
    return REVIEW_SYSTEM_PROMPT, prompt
