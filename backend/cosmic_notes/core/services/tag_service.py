from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ApplicationError, NotFoundError, UserError
from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.prompts.merge import MERGE_SYSTEM_PROMPT, build_merge_prompt
from cosmic_notes.core.schemas.tagging import (
    MergeSuggestion,
    MergeSuggestionOutput,
    TagMergeResult,
)
from cosmic_notes.core.schemas.taxonomy import NoteTaxonomy, TagFamily, TagFamilyDetail
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client, parse_structured
from cosmic_notes.utils.text import capitalize_tag

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.tag import Tag
    from cosmic_notes.core.repositories.cluster_repository import ClusterRepository
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository
    from cosmic_notes.core.repositories.todo_repository import TodoRepository
    from cosmic_notes.core.schemas.tagging import TagMerge
    from cosmic_notes.core.services.cluster_service import ClusterService

logger = get_logger(__name__)

MERGE_FAILED_MESSAGE = "Failed to merge tags"


def _pick_survivor(rows: Sequence[Tag], primary_name: str) -> Tag:
    for row in rows:
        if row.name == primary_name:
            return row
    return max(rows, key=lambda r: (r.confidence, -r.id))


class TagService:
    """Tag families, merges and merge suggestions.

    Families are computed from tag rows on every call; nothing about a family
    is stored apart from the rows themselves and the clusters and todos keyed
    by its name.
    """

    def __init__(
        self,
        notes: NoteRepository,
        tags: TagRepository,
        clusters: ClusterRepository,
        todos: TodoRepository,
        cluster_service: ClusterService,
        *,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._notes = notes
        self._tags = tags
        self._clusters = clusters
        self._todos = todos
        self._cluster_service = cluster_service
        self._client = client

    async def merge_tags(self, merges: Sequence[TagMerge]) -> list[TagMergeResult]:
        """Apply each merge group independently; a failed group never aborts the rest."""
        if not merges:
            raise UserError("At least one merge group is required")

        results: list[TagMergeResult] = []
        for merge in merges:
            primary = capitalize_tag(merge.primary_name)
            try:
                results.append(await self._merge_group(primary, merge))
            except Exception as err:
                logger.error(
                    "Tag merge failed: %s",
                    err,
                    extra={"tag_name": primary, "error_type": type(err).__name__},
                )
                results.append(TagMergeResult(primary_name=primary, success=False, error=MERGE_FAILED_MESSAGE))
        return results

    async def _merge_group(self, primary: str, merge: TagMerge) -> TagMergeResult:
        # stored names went through capitalize_tag, so match both spellings
        names = [merge.primary_name, *merge.similar_names]
        similar = list(dict.fromkeys(v for n in names for v in (n, capitalize_tag(n)) if v and v != primary))
        if not similar:
            return TagMergeResult(primary_name=primary, success=True)

        rows = await self._tags.list_by_names([primary, *similar])
        by_note: dict[int, list[Tag]] = defaultdict(list)
        for row in rows:
            by_note[row.note_id].append(row)

        affected = sorted(note_id for note_id, group in by_note.items() if any(r.name != primary for r in group))
        duplicates: list[int] = []
        for group in by_note.values():
            if len(group) > 1:
                keep = _pick_survivor(group, primary)
                duplicates.extend(r.id for r in group if r.id != keep.id)

        # duplicates go first so the rename cannot hit the (note_id, name) constraint
        await self._tags.delete_ids(duplicates)
        await self._tags.rename(similar, primary)
        await self._todos.rename_family(similar, primary)
        for name in similar:
            await self._clusters.delete_by_family(name)

        notes = await self._notes.list_by_ids(affected)
        side_effects = await self._cluster_service.reconcile_tag_family(primary, {n.category for n in notes})
        logger.info(
            "Merged tags",
            extra={"tag_name": primary, "merged_names": similar, "note_count": len(affected)},
        )
        return TagMergeResult(
            primary_name=primary,
            success=True,
            affected_note_ids=affected,
            side_effects=side_effects,
        )

    async def list_tag_families(self) -> list[TagFamily]:
        rows = await self._tags.list_all()
        note_ids: dict[str, set[int]] = defaultdict(set)
        for row in rows:
            note_ids[row.name].add(row.note_id)

        notes = await self._notes.list_by_ids({r.note_id for r in rows})
        category_of = {n.id: n.category for n in notes}

        families = [self._family(name, ids, category_of) for name, ids in note_ids.items()]
        families.sort(key=lambda f: (-f.note_count, f.name))
        return families

    async def get_tag_family(self, name: str) -> TagFamilyDetail:
        rows = await self._tags.list_by_names([name])
        if not rows:
            raise NotFoundError("Tag family not found", {"tag_name": name})
        ids = {r.note_id for r in rows}
        notes = await self._notes.list_by_ids(ids)
        family = self._family(name, ids, {n.id: n.category for n in notes})
        clusters = await self._clusters.list(tag_family=name, limit=len(NoteCategory))
        todos = await self._todos.list(tag_family=name)
        return TagFamilyDetail(**family.model_dump(), clusters=list(clusters), todos=list(todos))

    async def get_taxonomy(self) -> NoteTaxonomy:
        rows = await self._tags.list_all()
        return NoteTaxonomy(tag_vocab=sorted({r.name for r in rows}))

    @staticmethod
    def _family(name: str, ids: set[int], category_of: dict[int, NoteCategory]) -> TagFamily:
        present = {category_of[i] for i in ids if i in category_of}
        return TagFamily(
            name=name,
            note_count=len(ids),
            note_ids=sorted(ids),
            categories=[c for c in NoteCategory if c in present],
        )

    async def suggest_merges(self) -> list[MergeSuggestion]:
        """Ask the model which families look like duplicates. Never applies anything."""
        families = await self.list_tag_families()
        if len(families) < 2:
            return []
        known = {f.name for f in families}

        try:
            output = await parse_structured(
                self._client or get_openai_client(),
                model=settings.tagging_model,
                system=MERGE_SYSTEM_PROMPT,
                prompt=build_merge_prompt(
                    [(f.name, f.note_count) for f in families],
                    settings.merge_suggestion_guidelines,
                ),
                schema=MergeSuggestionOutput,
            )
        except Exception as err:
            logger.error("Merge suggestion failed: %s", err, extra={"error_type": type(err).__name__})
            raise ApplicationError("Failed to generate tag refinement suggestions", {"error": str(err)}) from err

        suggestions: list[MergeSuggestion] = []
        for item in output.suggestions:
            if item.confidence < settings.merge_suggestion_confidence:
                continue
            primary = capitalize_tag(item.primary_name)
            similar = [n for n in dict.fromkeys(item.similar_names) if n in known and n != primary]
            if not primary or not similar:
                continue
            suggestions.append(item.model_copy(update={"primary_name": primary, "similar_names": similar}))
        return suggestions
