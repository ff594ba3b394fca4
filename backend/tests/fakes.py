"""In-memory repositories and a scripted OpenAI client for tests.

The store enforces the same constraints as the database: unique
(note_id, name) tag rows, tag rows referencing existing notes, cascade on
note delete and unique (user_id, tag_family, category) clusters. Tests can
therefore observe ordering mistakes (renaming before removing duplicates)
as real failures.
"""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any
from uuid import UUID

from cosmic_notes.core.models.cluster import Cluster
from cosmic_notes.core.models.note import Note
from cosmic_notes.core.models.review import WeeklyReview
from cosmic_notes.core.models.tag import Tag
from cosmic_notes.core.models.todo import TodoItem
from cosmic_notes.core.repositories.cluster_repository import ClusterRepository
from cosmic_notes.core.repositories.note_repository import NoteRepository
from cosmic_notes.core.repositories.review_repository import ReviewRepository
from cosmic_notes.core.repositories.tag_repository import TagRepository
from cosmic_notes.core.repositories.todo_repository import TodoRepository
from cosmic_notes.core.schemas.note_search import NoteSearchResult
from cosmic_notes.core.schemas.review import WeeklyReviewOutput
from cosmic_notes.core.schemas.tagging import (
    ClusterSummaryOutput,
    ExtractedTag,
    NoteFields,
    TagExtractionOutput,
)

USER_ID = UUID("3f1c9d82-e4b0-4a6e-9b1d-2f6c8a7e5d10")

_START = datetime(2025, 1, 1, tzinfo=UTC)


class ConstraintViolation(RuntimeError):
    pass


@dataclass
class InMemoryStore:
    notes: dict[int, Note] = field(default_factory=dict)
    tags: dict[int, Tag] = field(default_factory=dict)
    clusters: dict[int, Cluster] = field(default_factory=dict)
    todos: dict[int, TodoItem] = field(default_factory=dict)
    reviews: dict[int, WeeklyReview] = field(default_factory=dict)
    embeddings: dict[int, list[float]] = field(default_factory=dict)
    similarity: dict[int, float] = field(default_factory=dict)
    fail_rename_to: set[str] = field(default_factory=set)
    _ids: Counter = field(default_factory=Counter)
    _ticks: int = 0

    def next_id(self, table: str) -> int:
        self._ids[table] += 1
        return self._ids[table]

    def now(self) -> datetime:
        # strictly increasing so "newest first" ordering is deterministic
        self._ticks += 1
        return _START + timedelta(seconds=self._ticks)

    def tag_names(self, note_id: int) -> list[str]:
        return sorted(t.name for t in self.tags.values() if t.note_id == note_id)

    def cluster_for(self, tag_family: str, category: Any) -> Cluster | None:
        for c in self.clusters.values():
            if c.tag_family == tag_family and c.category == category:
                return c
        return None

    def _check_unique_tags(self) -> None:
        seen: set[tuple[int, str]] = set()
        for t in self.tags.values():
            key = (t.note_id, t.name)
            if key in seen:
                raise ConstraintViolation(f"duplicate tag {key}")
            seen.add(key)


class FakeNoteRepository(NoteRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def create(self, draft):
        note = Note(id=self.store.next_id("notes"), created_at=self.store.now(), **draft.model_dump())
        self.store.notes[note.id] = note
        return note

    async def get(self, note_id):
        return self.store.notes.get(note_id)

    async def list(self, *, limit=50, offset=0, category=None, zone=None):
        notes = [
            n for n in self.store.notes.values()
            if (category is None or n.category == category) and (zone is None or n.zone == zone)
        ]
        notes.sort(key=lambda n: n.last_modified, reverse=True)
        return notes[offset:offset + limit]

    async def list_by_ids(self, note_ids, *, category=None):
        ids = set(note_ids)
        return [
            n for _, n in sorted(self.store.notes.items())
            if n.id in ids and (category is None or n.category == category)
        ]

    async def list_created_between(self, start, end):
        notes = [n for n in self.store.notes.values() if start <= n.created_at <= end]
        return sorted(notes, key=lambda n: n.created_at, reverse=True)

    async def update_fields(self, note_id, changes):
        note = self.store.notes.get(note_id)
        if note is None:
            return None
        allowed = {k: v for k, v in changes.items() if k not in {"id", "user_id", "created_at", "updated_at"}}
        updated = Note.model_validate({**note.model_dump(), **allowed, "updated_at": self.store.now()})
        self.store.notes[note_id] = updated
        return updated

    async def delete(self, note_id):
        if self.store.notes.pop(note_id, None) is None:
            return False
        for tag_id in [t.id for t in self.store.tags.values() if t.note_id == note_id]:
            del self.store.tags[tag_id]
        self.store.embeddings.pop(note_id, None)
        return True

    async def search(self, *, query, category, zone, limit):
        term = (query or "").lower()
        notes = await self.list(limit=len(self.store.notes) or 1, category=category, zone=zone)
        return [
            n for n in notes
            if not term or term in (n.title or "").lower() or term in n.content.lower()
        ][:limit]

    async def match(self, *, embedding, threshold, count):
        results = []
        for note_id, score in self.store.similarity.items():
            note = self.store.notes.get(note_id)
            if note is None or score < threshold:
                continue
            results.append(
                NoteSearchResult.model_validate({**note.model_dump(exclude={"chat_history"}), "rank": score})
            )
        results.sort(key=lambda r: r.rank, reverse=True)
        return results[:count]

    async def set_embedding(self, note_id, embedding):
        self.store.embeddings[note_id] = embedding


class FakeTagRepository(TagRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.calls: list[str] = []

    async def get(self, tag_id):
        return self.store.tags.get(tag_id)

    async def list_all(self):
        return sorted(self.store.tags.values(), key=lambda t: t.id)

    async def list_for_note(self, note_id):
        return sorted((t for t in self.store.tags.values() if t.note_id == note_id), key=lambda t: t.name)

    async def list_for_notes(self, note_ids):
        ids = set(note_ids)
        return sorted((t for t in self.store.tags.values() if t.note_id in ids), key=lambda t: t.name)

    async def list_by_names(self, names):
        wanted = set(names)
        return sorted((t for t in self.store.tags.values() if t.name in wanted), key=lambda t: (t.note_id, t.id))

    async def replace_for_note(self, note_id, tags):
        self.calls.append("delete")
        for tag_id in [t.id for t in self.store.tags.values() if t.note_id == note_id]:
            del self.store.tags[tag_id]
        self.calls.append("insert")
        if tags and note_id not in self.store.notes:
            raise ConstraintViolation(f"note {note_id} does not exist")
        rows = []
        for suggestion in tags:
            row = Tag(
                id=self.store.next_id("tags"),
                note_id=note_id,
                name=suggestion.name,
                confidence=suggestion.confidence,
                created_at=self.store.now(),
            )
            self.store.tags[row.id] = row
            rows.append(row)
        self.store._check_unique_tags()
        return rows

    async def delete_ids(self, tag_ids):
        removed = 0
        for tag_id in set(tag_ids):
            if self.store.tags.pop(tag_id, None) is not None:
                removed += 1
        return removed

    async def rename(self, names, new_name):
        if new_name in self.store.fail_rename_to:
            raise RuntimeError(f"rename to {new_name} failed")
        old = set(names)
        updated = []
        for tag_id, tag in list(self.store.tags.items()):
            if tag.name in old:
                self.store.tags[tag_id] = tag.model_copy(update={"name": new_name})
                updated.append(self.store.tags[tag_id])
        self.store._check_unique_tags()
        return updated


class FakeClusterRepository(ClusterRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get(self, cluster_id):
        return self.store.clusters.get(cluster_id)

    async def get_by_family(self, tag_family, category):
        return self.store.cluster_for(tag_family, category)

    async def list(self, *, tag_family=None, category=None, limit=10, offset=0):
        clusters = [
            c for c in self.store.clusters.values()
            if (tag_family is None or c.tag_family == tag_family) and (category is None or c.category == category)
        ]
        clusters.sort(key=lambda c: c.last_modified, reverse=True)
        return clusters[offset:offset + limit]

    async def upsert(self, draft):
        existing = next(
            (
                c for c in self.store.clusters.values()
                if (c.user_id, c.tag_family, c.category) == (draft.user_id, draft.tag_family, draft.category)
            ),
            None,
        )
        now = self.store.now()
        if existing is None:
            cluster = Cluster(id=self.store.next_id("clusters"), created_at=now, updated_at=now, **draft.model_dump())
        else:
            cluster = existing.model_copy(update={**draft.model_dump(), "updated_at": now})
        self.store.clusters[cluster.id] = cluster
        return cluster

    async def update_fields(self, cluster_id, changes):
        cluster = self.store.clusters.get(cluster_id)
        if cluster is None:
            return None
        updated = Cluster.model_validate({**cluster.model_dump(), **changes, "updated_at": self.store.now()})
        self.store.clusters[cluster_id] = updated
        return updated

    async def delete_by_family(self, tag_family, category=None):
        doomed = [
            c.id for c in self.store.clusters.values()
            if c.tag_family == tag_family and (category is None or c.category == category)
        ]
        for cluster_id in doomed:
            del self.store.clusters[cluster_id]
        return len(doomed)


class FakeTodoRepository(TodoRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def list(self, *, tag_family=None):
        return [t for t in self.store.todos.values() if tag_family is None or t.tag_family == tag_family]

    async def create(self, draft):
        todo = TodoItem(id=self.store.next_id("todos"), created_at=self.store.now(), **draft.model_dump())
        self.store.todos[todo.id] = todo
        return todo

    async def update_fields(self, todo_id, changes):
        todo = self.store.todos.get(todo_id)
        if todo is None:
            return None
        updated = todo.model_copy(update={**changes, "updated_at": self.store.now()})
        self.store.todos[todo_id] = updated
        return updated

    async def delete(self, todo_id):
        return self.store.todos.pop(todo_id, None) is not None

    async def rename_family(self, old_names, new_name):
        moved = 0
        for todo_id, todo in list(self.store.todos.items()):
            if todo.tag_family in old_names:
                self.store.todos[todo_id] = todo.model_copy(update={"tag_family": new_name})
                moved += 1
        return moved


class FakeReviewRepository(ReviewRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def create(self, draft):
        review = WeeklyReview(id=self.store.next_id("reviews"), created_at=self.store.now(), **draft.model_dump())
        self.store.reviews[review.id] = review
        return review

    async def get(self, review_id):
        return self.store.reviews.get(review_id)

    async def latest(self):
        return max(self.store.reviews.values(), key=lambda r: r.created_at, default=None)

    async def list_page(self, *, limit, offset):
        reviews = sorted(self.store.reviews.values(), key=lambda r: r.created_at, reverse=True)
        return reviews[offset:offset + limit], len(reviews)

    async def delete(self, review_id):
        return self.store.reviews.pop(review_id, None) is not None


_NOTE_ID = re.compile(r"ID: \[(\d+)\]")


def _summary_citing_every_note(kwargs: dict[str, Any]) -> ClusterSummaryOutput:
    prompt = kwargs["input"][-1]["content"]
    ids = _NOTE_ID.findall(prompt)
    return ClusterSummaryOutput(summary="Summary of " + " ".join(f"[{i}]" for i in ids))


class _FakeResponses:
    def __init__(self, owner: FakeOpenAI) -> None:
        self._owner = owner

    async def parse(self, **kwargs: Any) -> SimpleNamespace:
        schema = kwargs["text_format"]
        self._owner.calls[schema.__name__] += 1
        self._owner.requests.append(kwargs)
        handler = self._owner.handlers.get(schema)
        if handler is None:
            raise RuntimeError(f"no scripted output for {schema.__name__}")
        result = handler(kwargs)
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(output_parsed=result, refusal=None)


class _FakeEmbeddings:
    async def create(self, **kwargs: Any) -> SimpleNamespace:
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])


class FakeOpenAI:
    """Stands in for `AsyncOpenAI`; answers `responses.parse` per output schema.

    `handlers` maps a schema class to a callable receiving the request kwargs
    and returning the parsed object, or an exception instance to raise.
    `calls` counts requests per schema name.
    """

    def __init__(self) -> None:
        self.calls: Counter = Counter()
        self.requests: list[dict[str, Any]] = []
        self.responses = _FakeResponses(self)
        self.embeddings = _FakeEmbeddings()
        self.handlers: dict[type, Any] = {
            ClusterSummaryOutput: _summary_citing_every_note,
            NoteFields: lambda _: NoteFields(title="Untitled thoughts", category="scratchpad", zone="other"),
            TagExtractionOutput: lambda _: TagExtractionOutput(tags=[]),
            WeeklyReviewOutput: lambda _: WeeklyReviewOutput(review="Busy week, see [1]."),
        }

    def script_tags(self, *pairs: tuple[str, float]) -> None:
        self.handlers[TagExtractionOutput] = lambda _: TagExtractionOutput(
            tags=[ExtractedTag(tag=name, confidence=conf) for name, conf in pairs]
        )

    def script_fields(self, title: str, category: str, zone: str) -> None:
        self.handlers[NoteFields] = lambda _: NoteFields(title=title, category=category, zone=zone)

    def fail(self, schema: type, error: Exception | None = None) -> None:
        err = error or RuntimeError("model unavailable")
        self.handlers[schema] = lambda _: err
