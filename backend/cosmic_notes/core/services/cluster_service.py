from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.errors import NotFoundError, UserError
from cosmic_notes.core.models.cluster import ClusterDraft
from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.schemas.cluster import ClusterWithNotes
from cosmic_notes.core.schemas.lifecycle import SideEffectOutcome
from cosmic_notes.core.services.summary_service import generate_cluster_summary
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from openai import AsyncOpenAI

    from cosmic_notes.core.models.base import ChatMessage
    from cosmic_notes.core.models.cluster import Cluster
    from cosmic_notes.core.models.note import Note
    from cosmic_notes.core.repositories.cluster_repository import ClusterRepository
    from cosmic_notes.core.repositories.note_repository import NoteRepository
    from cosmic_notes.core.repositories.tag_repository import TagRepository

logger = get_logger(__name__)


def _category_order(categories: Iterable[NoteCategory]) -> list[NoteCategory]:
    wanted = set(categories)
    return [c for c in NoteCategory if c in wanted]


class ClusterService:
    """Builds, refreshes and removes clusters of notes sharing one tag in one category.

    A cluster exists only while at least `cluster_min_notes` distinct notes of
    its category carry the tag. Summaries are regenerated when the cluster is
    new, when the caller forces it, or when the stored member count no longer
    matches the live one; otherwise the stored cluster is returned as is.
    """

    def __init__(
        self,
        notes: NoteRepository,
        tags: TagRepository,
        clusters: ClusterRepository,
        *,
        client: AsyncOpenAI | None = None,
        min_notes: int | None = None,
    ) -> None:
        self._notes = notes
        self._tags = tags
        self._clusters = clusters
        self._client = client
        self._min_notes = settings.cluster_min_notes if min_notes is None else min_notes

    async def _resolve_tag_name(self, tag_name: str | None, tag_id: int | None) -> str:
        if tag_name and tag_name.strip():
            return tag_name.strip()
        if tag_id is None:
            raise UserError("Either tag_name or tag_id is required")
        tag = await self._tags.get(tag_id)
        if tag is None:
            raise NotFoundError("Tag not found", {"tag_id": tag_id})
        return tag.name

    async def _family_notes(self, tag_name: str, category: NoteCategory | None = None) -> Sequence[Note]:
        rows = await self._tags.list_by_names([tag_name])
        return await self._notes.list_by_ids({r.note_id for r in rows}, category=category)

    async def generate_cluster_for_category(
        self,
        category: NoteCategory,
        force_refresh: bool = False,
        tag_name: str | None = None,
        tag_id: int | None = None,
    ) -> Cluster | None:
        name = await self._resolve_tag_name(tag_name, tag_id)
        context = {"tag_name": name, "category": category.value}
        members = await self._family_notes(name, category)

        if len(members) < self._min_notes:
            removed = await self._clusters.delete_by_family(name, category)
            if removed:
                logger.info("Deleted cluster below minimum membership", extra={**context, "note_count": len(members)})
            return None

        existing = await self._clusters.get_by_family(name, category)
        if existing is not None and not force_refresh and existing.note_count == len(members):
            logger.debug("Cluster up to date", extra=context)
            return existing

        summary = await generate_cluster_summary(members, category, name, client=self._client)
        cluster = await self._clusters.upsert(
            ClusterDraft(
                tag_family=name,
                category=category,
                note_count=len(members),
                summary=summary,
                user_id=members[0].user_id,
            )
        )
        logger.info("Generated cluster", extra={**context, "note_count": len(members), "cluster_id": cluster.id})
        return cluster

    async def generate_all_clusters(self, tag_id: int, force_refresh: bool = False) -> list[Cluster]:
        """Run the per-category build for every category holding the tag.

        Failures are logged per category and do not stop the others.
        """
        name = await self._resolve_tag_name(None, tag_id)
        notes = await self._family_notes(name)

        results: list[Cluster] = []
        for category in _category_order(n.category for n in notes):
            try:
                cluster = await self.generate_cluster_for_category(category, force_refresh, tag_name=name)
            except Exception as err:
                logger.error(
                    "Cluster generation failed: %s",
                    err,
                    extra={"tag_name": name, "category": category.value, "error_type": type(err).__name__},
                )
                continue
            if cluster is not None:
                results.append(cluster)
        return results

    async def reconcile_tag_family(
        self,
        tag_name: str,
        categories: Iterable[NoteCategory],
    ) -> list[SideEffectOutcome]:
        """Force-rebuild or delete the family's clusters after its membership changed.

        Covers `categories` plus every category the family already has a
        cluster in. Never raises; each failure becomes an outcome.
        """
        wanted = set(categories)
        try:
            existing = await self._clusters.list(tag_family=tag_name, limit=len(NoteCategory))
            wanted.update(c.category for c in existing)
        except Exception as err:
            logger.error("Failed to list clusters for reconcile: %s", err, extra={"tag_name": tag_name})

        outcomes: list[SideEffectOutcome] = []
        for category in _category_order(wanted):
            target = {"tag_family": tag_name, "category": category.value}
            try:
                cluster = await self.generate_cluster_for_category(category, force_refresh=True, tag_name=tag_name)
            except Exception as err:
                logger.error(
                    "Cluster reconcile failed: %s",
                    err,
                    extra={**target, "error_type": type(err).__name__},
                )
                outcomes.append(
                    SideEffectOutcome(operation="cluster.reconcile", success=False, target=target, detail=str(err))
                )
                continue
            detail = "deleted" if cluster is None else f"regenerated ({cluster.note_count} notes)"
            outcomes.append(SideEffectOutcome(operation="cluster.reconcile", success=True, target=target, detail=detail))
        return outcomes

    async def list_clusters(
        self,
        *,
        tag_family: str | None = None,
        category: NoteCategory | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Cluster]:
        return await self._clusters.list(tag_family=tag_family, category=category, limit=limit, offset=offset)

    async def get_cluster(self, cluster_id: int) -> ClusterWithNotes:
        cluster = await self._clusters.get(cluster_id)
        if cluster is None:
            raise NotFoundError("Cluster not found", {"cluster_id": cluster_id})
        notes = await self._family_notes(cluster.tag_family, cluster.category)
        return ClusterWithNotes(cluster=cluster, notes=list(notes))

    async def update_chat_history(self, cluster_id: int, messages: Sequence[ChatMessage]) -> Cluster:
        cluster = await self._clusters.update_fields(
            cluster_id,
            {"chat_history": [m.model_dump() for m in messages]},
        )
        if cluster is None:
            raise NotFoundError("Cluster not found", {"cluster_id": cluster_id})
        return cluster
