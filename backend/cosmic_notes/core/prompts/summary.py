from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cosmic_notes.core.models.note import NoteCategory

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note

_CITATION_RULE = (
    "- Cite the source of every point with its note ID in square brackets, e.g. [12]. "
    "Every note must be cited at least once.\n"
    "- Preserve all original content; do not invent facts, conclusions or tasks.\n"
    "- Output markdown only."
)


@dataclass(frozen=True)
class SummaryTemplate:
    role: str
    instruction: str
    with_date: bool = False


_TEMPLATES: dict[NoteCategory, SummaryTemplate] = {
    NoteCategory.TODO: SummaryTemplate(
        role="You are a task organizer who merges several to-do lists into one checklist.",
        instruction=(
            "Merge the following to-do notes into a single markdown checklist grouped by theme. "
            "Deduplicate identical tasks and keep each task's source note."
        ),
    ),
    NoteCategory.SCRATCHPAD: SummaryTemplate(
        role="You bring structure to scattered thoughts while preserving every idea.",
        instruction=(
            "Organize the following scratchpad notes into a coherent document. "
            "Preserve all original thoughts while creating a logical structure."
        ),
    ),
    NoteCategory.COLLECTION: SummaryTemplate(
        role="You organize collections of related items into logical groupings.",
        instruction=(
            "Organize the following collection notes into a single comprehensive collection "
            "with logical groupings."
        ),
    ),
    NoteCategory.BRAINSTORM: SummaryTemplate(
        role="You are an ideation facilitator who consolidates brainstorms.",
        instruction=(
            "Organize the following brainstorm notes into a coherent ideation document "
            "that preserves all original concepts and ideas."
        ),
    ),
    NoteCategory.JOURNAL: SummaryTemplate(
        role="You organize journal entries while keeping the author's voice.",
        instruction=(
            "Organize the following journal entries chronologically while preserving the "
            "authentic voice and emotional context of each entry."
        ),
        with_date=True,
    ),
    NoteCategory.MEETING: SummaryTemplate(
        role="You turn meeting notes into a professional record.",
        instruction=(
            "Organize the following meeting notes into a document with clear sections for "
            "discussion, decisions and action items."
        ),
        with_date=True,
    ),
    NoteCategory.RESEARCH: SummaryTemplate(
        role="You organize research notes into a structured academic document.",
        instruction=(
            "Organize the following research notes into a comprehensive document that "
            "maintains all factual content and citations."
        ),
    ),
    NoteCategory.LEARNING: SummaryTemplate(
        role="You turn class and course notes into study guides.",
        instruction=(
            "Organize the following learning notes into a study guide that progresses from "
            "fundamental to advanced concepts."
        ),
    ),
    NoteCategory.FEEDBACK: SummaryTemplate(
        role="You are a feedback analyst who organizes feedback into actionable themes.",
        instruction=(
            "Organize the following feedback notes into a structured report that preserves "
            "the original sentiment and priority of each point."
        ),
        with_date=True,
    ),
}


def format_note(note: Note, *, with_date: bool = False) -> str:
    lines = [f"## Note Title: {note.title or 'Untitled'}"]
    header = f"ID: [{note.id}]"
    if with_date:
        header += f" Date: {note.created_at.strftime('%m/%d/%y')}"
    lines.append(header)
    lines.append(f"Content: {note.content}")
    return "\n".join(lines)


def build_summary_prompt(notes: Sequence[Note], category: NoteCategory, tag_name: str) -> tuple[str, str]:
    """Return (system, user) prompts summarizing `notes` of one category sharing `tag_name`.

    Notes are rendered in the order given; callers pass them sorted by id so the
    prompt is identical for an identical membership set.
    """
    template = _TEMPLATES.get(category, _TEMPLATES[NoteCategory.SCRATCHPAD])
    system = f"{template.role}\n\n# Rules\n{_CITATION_RULE}"
    body = "\n\n".join(format_note(n, with_date=template.with_date) for n in notes)
    prompt = f"{template.instruction}\n\nAll notes share the tag \"{tag_name}\".\n\n{body}"
    return system, prompt
