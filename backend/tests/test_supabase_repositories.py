"""Row mapping and query shape of the Supabase repositories, against a recording client."""
from types import SimpleNamespace

import pytest

from cosmic_notes.core.models.cluster import ClusterDraft
from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.repositories.implementations.supabase.cluster_repository import SupabaseClusterRepository
from cosmic_notes.core.repositories.implementations.supabase.note_repository import SupabaseNoteRepository
from cosmic_notes.core.repositories.implementations.supabase.review_repository import SupabaseReviewRepository
from cosmic_notes.core.repositories.implementations.supabase.tag_repository import SupabaseTagRepository
from cosmic_notes.core.schemas.tagging import TagSuggestion
from tests.fakes import USER_ID


class _Query:
    def __init__(self, client, table):
        self._client = client
        self.calls = [("table", table)]

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, *args, *sorted(kwargs.items())))
            return self

        return record

    def execute(self):
        self._client.queries.append(self.calls)
        data = self._client.responses.pop(0) if self._client.responses else []
        return SimpleNamespace(data=data, count=len(data))


class RecordingClient:
    """Stands in for the sync supabase `Client`; replays `responses` in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.queries = []

    def table(self, name):
        return _Query(self, name)

    def rpc(self, name, params):
        query = _Query(self, f"rpc:{name}")
        query.calls.append(("params", params))
        return query


def _note_row(**overrides):
    row = {
        "id": 7,
        "title": "Milk",
        "content": None,
        "category": "to-do",
        "zone": "personal",
        "chat_history": None,
        "user_id": str(USER_ID),
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": None,
        "embedding": [0.1, 0.2],
        "lexeme": "'milk'",
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_note_rows_drop_database_only_columns():
    repo = SupabaseNoteRepository(RecordingClient([_note_row()]))

    note = await repo.get(7)

    assert note.id == 7
    assert note.content == ""
    assert note.chat_history == []
    assert note.category == NoteCategory.TODO


@pytest.mark.asyncio
async def test_match_maps_similarity_to_rank():
    client = RecordingClient([_note_row(similarity=0.83)])
    repo = SupabaseNoteRepository(client)

    [result] = await repo.match(embedding=[0.1], threshold=0.5, count=5)

    assert result.rank == pytest.approx(0.83)
    assert result.tags == []
    assert ("params", {"query_embedding": [0.1], "match_threshold": 0.5, "match_count": 5}) in client.queries[0]


@pytest.mark.asyncio
async def test_search_escapes_filter_syntax():
    client = RecordingClient([])
    repo = SupabaseNoteRepository(client)

    await repo.search(query="milk,(eggs)", category=NoteCategory.TODO, zone=None, limit=5)

    calls = client.queries[0]
    assert ("or_", "title.ilike.%milk  eggs%,content.ilike.%milk  eggs%") in calls
    assert ("eq", "category", "to-do") in calls


@pytest.mark.asyncio
async def test_update_fields_skips_immutable_columns_and_serializes_category():
    client = RecordingClient([_note_row(category="journal")])
    repo = SupabaseNoteRepository(client)

    note = await repo.update_fields(7, {"category": NoteCategory.JOURNAL, "user_id": "x", "id": 1})

    assert note.category == NoteCategory.JOURNAL
    update = next(c for c in client.queries[0] if c[0] == "update")[1]
    assert update["category"] == "journal"
    assert "user_id" not in update and "id" not in update
    assert "updated_at" in update


@pytest.mark.asyncio
async def test_replace_for_note_deletes_before_insert():
    inserted = [{"id": 1, "note_id": 7, "name": "Groceries", "confidence": None, "user_id": str(USER_ID)}]
    client = RecordingClient([], inserted)
    repo = SupabaseTagRepository(client)

    [tag] = await repo.replace_for_note(7, [TagSuggestion(name="Groceries", confidence=1.0)])

    assert [q[1][0] for q in client.queries] == ["delete", "insert"]
    assert tag.confidence == 1.0


@pytest.mark.asyncio
async def test_empty_inputs_skip_the_database():
    client = RecordingClient()
    repo = SupabaseTagRepository(client)

    assert await repo.list_by_names([]) == []
    assert await repo.delete_ids([]) == 0
    assert await repo.rename([], "Todo") == []
    assert client.queries == []


@pytest.mark.asyncio
async def test_cluster_upsert_targets_family_key():
    row = {
        "id": 3,
        "tag_family": "Groceries",
        "category": "to-do",
        "note_count": 2,
        "summary": None,
        "chat_history": None,
        "user_id": str(USER_ID),
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-02T00:00:00+00:00",
    }
    client = RecordingClient([row])
    repo = SupabaseClusterRepository(client)

    cluster = await repo.upsert(
        ClusterDraft(tag_family="Groceries", category=NoteCategory.TODO, note_count=2, summary="s", user_id=USER_ID)
    )

    assert cluster.id == 3
    assert cluster.summary == ""
    upsert = next(c for c in client.queries[0] if c[0] == "upsert")
    assert upsert[1]["category"] == "to-do"
    assert upsert[2] == ("on_conflict", "user_id,tag_family,category")


@pytest.mark.asyncio
async def test_review_page_requests_exact_count_and_range():
    row = {
        "id": 3,
        "review": "# Week",
        "note_count": 4,
        "period_start": "2025-01-01T00:00:00+00:00",
        "period_end": "2025-01-08T00:00:00+00:00",
        "user_id": str(USER_ID),
        "created_at": "2025-01-08T00:00:00+00:00",
        "updated_at": None,
    }
    client = RecordingClient([row])

    reviews, total = await SupabaseReviewRepository(client).list_page(limit=10, offset=20)

    assert [r.id for r in reviews] == [3]
    assert total == 1
    assert client.queries[0] == [
        ("table", "weekly_reviews"),
        ("select", "*", ("count", "exact")),
        ("order", "created_at", ("desc", True)),
        ("range", 20, 29),
    ]
