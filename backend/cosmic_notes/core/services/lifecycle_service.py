from __future__ import annotations

from collections import Counter, defaultdict
from typing import TYPE_CHECKING, Any

from cosmic_notes.config import settings
from cosmic_notes.core.errors import NotFoundError, UserError
from cosmic_notes.core.models.note import DEFAULT_CATEGORY, DEFAULT_ZONE, NoteDraft
from cosmic_notes.core.schemas.lifecycle import NoteMutationResult, SideEffectOutcome
from cosmic_notes.core.schemas.note_input import NoteCreate, NoteUpdate
from cosmic_notes.core.schemas.tagging import TagSuggestion
from cosmic_notes.core.services.classification_service import generate_note_fields
from cosmic_notes.core.services.note_locks import note_locks
from cosmic_notes.core.services.tag_extraction_service import extract_tags
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.text import capitalize_tag, sanitize_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.note import Note, NoteCategory
    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.services.cluster_service import ClusterService
    from cosmic_notes.core.services.note_locks import NoteLockRegistry

logger = get_logger(__name__)

Pairs = dict[str, set["NoteCategory"]]


def _explicit_tags(names: Iterable[str]) -> list[TagSuggestion]:
    tags: dict[str, TagSuggestion] = {}
    for raw in names:
        name = capitalize_tag(raw)[:100]
        if name:
            tags.setdefault(name, TagSuggestion(name=name, confidence=1.0))
    return list(tags.values())


def _add_pairs(pairs: Pairs, names: Iterable[str], category: NoteCategory) -> None:
    for name in names:
        pairs[name].add(category)


class NoteLifecycleService:
    """Coordinates a note mutation with its secondary cascade.

    The note write is the primary outcome and its errors propagate. Tag
    extraction, tag persistence and cluster rebuilds are best-effort: each is
    reported as a `SideEffectOutcome` on the returned `NoteMutationResult`.
    All mutations of one note id are serialized.
    """

    def __init__(
        self,
        notes: NoteRepository,
        tags: TagRepository,
        cluster_service: ClusterService,
        *,
        client: AsyncOpenAI | None = None,
        locks: NoteLockRegistry | None = None,
    ) -> None:
        self._notes = notes
        self._tags = tags
        self._clusters = cluster_service
        self._client = client
        self._locks = locks or note_locks

    async def _require(self, note_id: int) -> Note:
        note = await self._notes.get(note_id)
        if note is None:
            raise NotFoundError("Note not found", {"note_id": note_id})
        return note

    async def _vocabulary(self) -> list[str]:
        """Tag names in use, most used first; an empty list when they cannot be read."""
        try:
            rows = await self._tags.list_all()
        except Exception as err:
            logger.warning("Failed to load tag vocabulary: %s", err, extra={"error_type": type(err).__name__})
            return []
        return [name for name, _ in Counter(r.name for r in rows).most_common()]

    async def _extract(
        self,
        note: Note,
        side_effects: list[SideEffectOutcome],
        *,
        limit: int | None = None,
    ) -> list[TagSuggestion] | None:
        target = {"note_id": note.id}
        try:
            tags = await extract_tags(
                note.content,
                note.category,
                vocabulary=await self._vocabulary(),
                client=self._client,
            )
        except Exception as err:
            logger.warning(
                "Tag extraction skipped: %s",
                err,
                extra={"note_id": note.id, "error_type": type(err).__name__},
            )
            side_effects.append(SideEffectOutcome(operation="tags.extract", success=False, target=target, detail=str(err)))
            return None
        if limit is not None:
            tags = tags[:limit]
        side_effects.append(
            SideEffectOutcome(operation="tags.extract", success=True, target=target, detail=f"{len(tags)} tags")
        )
        return tags

    async def _replace(
        self,
        note: Note,
        tags: Sequence[TagSuggestion],
        side_effects: list[SideEffectOutcome],
    ) -> list[str] | None:
        try:
            rows = await self._tags.replace_for_note(note.id, tags)
        except Exception as err:
            logger.error(
                "Failed to store tags: %s",
                err,
                extra={"note_id": note.id, "error_type": type(err).__name__},
            )
            side_effects.append(
                SideEffectOutcome(operation="tags.replace", success=False, target={"note_id": note.id}, detail=str(err))
            )
            return None
        return [r.name for r in rows]

    async def _current_names(self, note_id: int) -> list[str]:
        rows: Sequence[Tag] = await self._tags.list_for_note(note_id)
        return [r.name for r in rows]

    async def _reconcile(self, pairs: Pairs) -> list[SideEffectOutcome]:
        outcomes: list[SideEffectOutcome] = []
        for name in sorted(pairs):
            outcomes.extend(await self._clusters.reconcile_tag_family(name, pairs[name]))
        return outcomes

    async def save_note(
        self,
        data: NoteCreate | NoteUpdate,
        *,
        user_id: UUID | None = None,
        note_id: int | None = None,
    ) -> NoteMutationResult:
        """Create when `note_id` is None, otherwise apply `data` as a partial update."""
        if note_id is not None:
            if isinstance(data, NoteCreate):
                data = NoteUpdate.model_validate(data.model_dump(exclude_unset=True))
            return await self.update_note(note_id, data)
        if not isinstance(data, NoteCreate) or user_id is None:
            raise UserError("Creating a note needs content and an owner")
        return await self.create_note(data, user_id)

    async def create_note(self, data: NoteCreate, user_id: UUID) -> NoteMutationResult:
        side_effects: list[SideEffectOutcome] = []
        content = sanitize_text(data.content)
        title, category, zone = data.title, data.category, data.zone

        if title is None or category is None or zone is None:
            try:
                fields = await generate_note_fields(content, client=self._client)
            except Exception as err:
                logger.warning("Note classification skipped: %s", err, extra={"error_type": type(err).__name__})
                side_effects.append(SideEffectOutcome(operation="note.classify", success=False, detail=str(err)))
            else:
                title = title if title is not None else (fields.title or None)
                category = category or fields.category
                zone = zone if zone is not None else fields.zone
                side_effects.append(SideEffectOutcome(operation="note.classify", success=True))

        note = await self._notes.create(
            NoteDraft(
                title=title,
                content=content,
                category=category or DEFAULT_CATEGORY,
                zone=zone or DEFAULT_ZONE,
                user_id=user_id,
            )
        )
        logger.info("Created note", extra={"note_id": note.id, "category": note.category.value})

        async with self._locks.hold(note.id):
            suggestions = _explicit_tags(data.tags) if data.tags is not None else await self._extract(note, side_effects)
            names = await self._replace(note, suggestions, side_effects) if suggestions is not None else None
            pairs: Pairs = defaultdict(set)
            _add_pairs(pairs, names or [], note.category)
            side_effects.extend(await self._reconcile(pairs))

        return NoteMutationResult(note=note, side_effects=side_effects)

    async def update_note(self, note_id: int, data: NoteUpdate) -> NoteMutationResult:
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude={"tags"})
        if "content" in changes:
            if changes["content"] is None:
                raise UserError("content cannot be emptied; delete the note instead")
            changes["content"] = sanitize_text(changes["content"])
        if "category" in changes and changes["category"] is None:
            changes.pop("category")

        async with self._locks.hold(note_id):
            existing = await self._require(note_id)
            old_names = await self._current_names(note_id)

            note = await self._notes.update_fields(note_id, changes)
            if note is None:
                raise NotFoundError("Note not found", {"note_id": note_id})

            side_effects: list[SideEffectOutcome] = []
            content_changed = note.content != existing.content
            new_names: list[str] | None = None
            if data.tags is not None:
                new_names = await self._replace(note, _explicit_tags(data.tags), side_effects)
            elif content_changed:
                suggestions = await self._extract(note, side_effects)
                if suggestions is not None:
                    new_names = await self._replace(note, suggestions, side_effects)

            summary_inputs_changed = content_changed or note.title != existing.title
            if summary_inputs_changed or new_names is not None or note.category != existing.category:
                pairs: Pairs = defaultdict(set)
                _add_pairs(pairs, old_names, existing.category)
                _add_pairs(pairs, old_names if new_names is None else new_names, note.category)
                side_effects.extend(await self._reconcile(pairs))

        logger.info("Updated note", extra={"note_id": note_id, "fields": sorted(changes)})
        return NoteMutationResult(note=note, side_effects=side_effects)

    async def refresh_note(self, note_id: int) -> NoteMutationResult:
        """Regenerate title, category and zone (errors propagate) and the top tags (best-effort)."""
        async with self._locks.hold(note_id):
            existing = await self._require(note_id)
            if not existing.content.strip():
                raise UserError("Note has no content to refresh", {"note_id": note_id})
            old_names = await self._current_names(note_id)

            fields = await generate_note_fields(existing.content, client=self._client)
            note = await self._notes.update_fields(
                note_id,
                {"title": fields.title or existing.title, "category": fields.category, "zone": fields.zone},
            )
            if note is None:
                raise NotFoundError("Note not found", {"note_id": note_id})

            side_effects: list[SideEffectOutcome] = []
            new_names = old_names
            suggestions = await self._extract(note, side_effects, limit=settings.refresh_max_tags)
            if suggestions is not None:
                stored = await self._replace(note, suggestions, side_effects)
                if stored is not None:
                    new_names = stored

            pairs: Pairs = defaultdict(set)
            _add_pairs(pairs, old_names, existing.category)
            _add_pairs(pairs, new_names, note.category)
            side_effects.extend(await self._reconcile(pairs))

        logger.info("Refreshed note", extra={"note_id": note_id, "category": note.category.value})
        return NoteMutationResult(note=note, side_effects=side_effects)

    async def delete_note(self, note_id: int) -> NoteMutationResult:
        async with self._locks.hold(note_id):
            existing = await self._require(note_id)
            old_names = await self._current_names(note_id)
            if not await self._notes.delete(note_id):
                raise NotFoundError("Note not found", {"note_id": note_id})

            pairs: Pairs = defaultdict(set)
            _add_pairs(pairs, old_names, existing.category)
            side_effects = await self._reconcile(pairs)

        logger.info("Deleted note", extra={"note_id": note_id, "tag_count": len(old_names)})
        return NoteMutationResult(note=existing, side_effects=side_effects)

    async def save_tags(self, note_id: int, names: Sequence[str]) -> NoteMutationResult:
        """Replace every tag of the note with `names` (confidence 1.0)."""
        async with self._locks.hold(note_id):
            note = await self._require(note_id)
            old_names = await self._current_names(note_id)
            rows = await self._tags.replace_for_note(note_id, _explicit_tags(names))

            pairs: Pairs = defaultdict(set)
            _add_pairs(pairs, [*old_names, *(r.name for r in rows)], note.category)
            side_effects = await self._reconcile(pairs)
        return NoteMutationResult(note=note, side_effects=side_effects)

    async def delete_tag_from_note(self, note_id: int, tag: str) -> NoteMutationResult:
        """Remove one tag from a note, by tag name or numeric tag-row id."""
        async with self._locks.hold(note_id):
            note = await self._require(note_id)
            rows = await self._tags.list_for_note(note_id)
            row = next((r for r in rows if r.name == tag), None)
            if row is None and tag.isdigit():
                row = next((r for r in rows if r.id == int(tag)), None)
            if row is None:
                raise NotFoundError("Tag not found on note", {"note_id": note_id, "tag": tag})

            await self._tags.delete_ids([row.id])
            pairs: Pairs = defaultdict(set)
            _add_pairs(pairs, [row.name], note.category)
            side_effects = await self._reconcile(pairs)
        return NoteMutationResult(note=note, side_effects=side_effects)
