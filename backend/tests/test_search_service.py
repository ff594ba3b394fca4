import pytest

from cosmic_notes.core.errors import ApplicationError, UserError
from cosmic_notes.core.models.note import NoteCategory, NoteDraft
from cosmic_notes.core.schemas.note_search import NoteSearchQuery
from cosmic_notes.core.schemas.tagging import TagSuggestion
from cosmic_notes.core.services.embedding_service import build_note_text
from cosmic_notes.core.services.search_service import SearchService
from tests.fakes import USER_ID


@pytest.fixture
def search(note_repo, tag_repo, fake_openai):
    return SearchService(note_repo, tag_repo, client=fake_openai)


async def _note(note_repo, tag_repo, content, category=NoteCategory.TODO, zone="personal", tags=()):
    note = await note_repo.create(NoteDraft(content=content, category=category, zone=zone, user_id=USER_ID))
    await tag_repo.replace_for_note(note.id, [TagSuggestion(name=t) for t in tags])
    return note


@pytest.mark.asyncio
async def test_keyword_search_attaches_tags(search, note_repo, tag_repo):
    milk = await _note(note_repo, tag_repo, "buy milk", tags=("Groceries",))
    await _note(note_repo, tag_repo, "fix the sink")

    results = await search.search_notes(NoteSearchQuery(query="MILK"))

    assert [(r.id, r.tags) for r in results] == [(milk.id, ["Groceries"])]


@pytest.mark.asyncio
async def test_semantic_search_ranks_and_filters(search, note_repo, tag_repo, store):
    a = await _note(note_repo, tag_repo, "buy milk")
    b = await _note(note_repo, tag_repo, "milk tasting notes", category=NoteCategory.JOURNAL)
    c = await _note(note_repo, tag_repo, "dairy aisle", tags=("Groceries",))
    store.similarity.update({a.id: 0.7, b.id: 0.9, c.id: 0.8})

    results = await search.semantic_search(NoteSearchQuery(query="milk", category=NoteCategory.TODO))

    assert [r.id for r in results] == [c.id, a.id]
    assert results[0].tags == ["Groceries"]


@pytest.mark.asyncio
async def test_semantic_search_needs_query(search):
    with pytest.raises(UserError):
        await search.semantic_search(NoteSearchQuery(query="  "))


@pytest.mark.asyncio
async def test_semantic_search_fails_when_embedding_fails(search, fake_openai):
    async def broken(**kwargs):
        raise RuntimeError("rate limited")

    fake_openai.embeddings.create = broken

    with pytest.raises(ApplicationError):
        await search.semantic_search(NoteSearchQuery(query="milk"))


def test_build_note_text_joins_parts_and_skips_blanks():
    assert build_note_text("Milk", " buy milk ", ["Groceries", "Dairy"]) == "Milk\n\nbuy milk\n\nTags: Groceries, Dairy"
    assert build_note_text(None, "buy milk") == "buy milk"
    assert build_note_text("  ", None) == ""
