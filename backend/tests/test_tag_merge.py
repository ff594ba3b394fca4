import pytest

from cosmic_notes.core.errors import ApplicationError, NotFoundError, UserError
from cosmic_notes.core.models.note import NoteCategory, NoteDraft
from cosmic_notes.core.models.todo import TodoDraft
from cosmic_notes.core.schemas.tagging import (
    MergeSuggestion,
    MergeSuggestionOutput,
    TagMerge,
    TagSuggestion,
)
from tests.fakes import USER_ID


async def _note(note_repo, tag_repo, category, *tags):
    note = await note_repo.create(NoteDraft(content="x", category=category, user_id=USER_ID))
    await tag_repo.replace_for_note(note.id, [TagSuggestion(name=n, confidence=c) for n, c in tags])
    return note


def _rows(store, note_id):
    return sorted((t.name, t.confidence) for t in store.tags.values() if t.note_id == note_id)


@pytest.mark.asyncio
async def test_merge_leaves_one_primary_row_per_note(tag_service, note_repo, tag_repo, store):
    both = await _note(note_repo, tag_repo, NoteCategory.TODO, ("ToDo", 0.6), ("To-do", 0.9))
    with_primary = await _note(note_repo, tag_repo, NoteCategory.TODO, ("Todo", 0.5), ("ToDo", 0.9))
    only_variant = await _note(note_repo, tag_repo, NoteCategory.JOURNAL, ("To-do", 0.7))

    [result] = await tag_service.merge_tags([TagMerge(primary_name="Todo", similar_names=["ToDo", "To-do"])])

    assert result.success is True
    assert result.affected_note_ids == [both.id, with_primary.id, only_variant.id]
    # highest confidence survives when no row already has the primary name
    assert _rows(store, both.id) == [("Todo", 0.9)]
    # an existing primary row survives as is
    assert _rows(store, with_primary.id) == [("Todo", 0.5)]
    assert _rows(store, only_variant.id) == [("Todo", 0.7)]
    assert not any(t.name in {"ToDo", "To-do"} for t in store.tags.values())


@pytest.mark.asyncio
async def test_merge_moves_clusters_and_todos_to_primary(
    tag_service, cluster_service, note_repo, tag_repo, todo_repo, store
):
    a = await _note(note_repo, tag_repo, NoteCategory.TODO, ("ToDo", 0.9))
    b = await _note(note_repo, tag_repo, NoteCategory.TODO, ("ToDo", 0.8))
    await cluster_service.generate_cluster_for_category(NoteCategory.TODO, tag_name="ToDo")
    await todo_repo.create(TodoDraft(tag_family="ToDo", text="call the plumber", user_id=USER_ID))

    [result] = await tag_service.merge_tags([TagMerge(primary_name="Todo", similar_names=["ToDo"])])

    assert store.cluster_for("ToDo", NoteCategory.TODO) is None
    cluster = store.cluster_for("Todo", NoteCategory.TODO)
    assert cluster.note_count == 2
    assert f"/note/{a.id}" in cluster.summary and f"/note/{b.id}" in cluster.summary
    assert [t.tag_family for t in store.todos.values()] == ["Todo"]
    assert [s.detail for s in result.side_effects] == ["regenerated (2 notes)"]


@pytest.mark.asyncio
async def test_primary_name_is_capitalized_and_raw_form_merged(tag_service, note_repo, tag_repo, store):
    note = await _note(note_repo, tag_repo, NoteCategory.SCRATCHPAD, ("ideas", 0.8), ("Idea", 0.6))

    [result] = await tag_service.merge_tags([TagMerge(primary_name="ideas", similar_names=["Idea"])])

    assert result.primary_name == "Ideas"
    assert _rows(store, note.id) == [("Ideas", 0.8)]


@pytest.mark.asyncio
async def test_failed_group_does_not_abort_other_groups(tag_service, note_repo, tag_repo, store):
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Brokn", 0.9))
    ok = await _note(note_repo, tag_repo, NoteCategory.TODO, ("ToDo", 0.9))
    store.fail_rename_to.add("Broken")

    results = await tag_service.merge_tags(
        [
            TagMerge(primary_name="Broken", similar_names=["Brokn"]),
            TagMerge(primary_name="Todo", similar_names=["ToDo"]),
        ]
    )

    assert [(r.primary_name, r.success, r.error) for r in results] == [
        ("Broken", False, "Failed to merge tags"),
        ("Todo", True, None),
    ]
    assert _rows(store, ok.id) == [("Todo", 0.9)]


@pytest.mark.asyncio
async def test_merge_requires_at_least_one_group(tag_service):
    with pytest.raises(UserError):
        await tag_service.merge_tags([])


def test_merge_group_validation_strips_and_dedupes():
    merge = TagMerge(primary_name=" Todo ", similar_names=["ToDo", " ToDo", "To-do"])
    assert merge.primary_name == "Todo"
    assert merge.similar_names == ["ToDo", "To-do"]


@pytest.mark.asyncio
async def test_families_are_counted_and_sorted(tag_service, note_repo, tag_repo):
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Groceries", 0.9), ("Errands", 0.8))
    await _note(note_repo, tag_repo, NoteCategory.COLLECTION, ("Groceries", 0.9))
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Bees", 0.9))

    families = await tag_service.list_tag_families()

    assert [(f.name, f.note_count) for f in families] == [("Groceries", 2), ("Bees", 1), ("Errands", 1)]
    assert families[0].categories == [NoteCategory.TODO, NoteCategory.COLLECTION]

    taxonomy = await tag_service.get_taxonomy()
    assert taxonomy.tag_vocab == ["Bees", "Errands", "Groceries"]

    with pytest.raises(NotFoundError):
        await tag_service.get_tag_family("Unknown")


@pytest.mark.asyncio
async def test_suggest_merges_filters_low_confidence_and_unknown_names(tag_service, note_repo, tag_repo, fake_openai):
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Groceries", 0.9))
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Grocery", 0.9))
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Errand", 0.9), ("Errands", 0.9))
    fake_openai.handlers[MergeSuggestionOutput] = lambda _: MergeSuggestionOutput(
        suggestions=[
            MergeSuggestion(
                primary_name="groceries",
                similar_names=["Grocery", "Groceries", "Shopping"],
                confidence=0.9,
                reason="plural",
            ),
            MergeSuggestion(primary_name="Errands", similar_names=["Errand"], confidence=0.6, reason="plural"),
        ]
    )

    suggestions = await tag_service.suggest_merges()

    assert [(s.primary_name, s.similar_names) for s in suggestions] == [("Groceries", ["Grocery"])]
    assert fake_openai.calls["MergeSuggestionOutput"] == 1


@pytest.mark.asyncio
async def test_suggest_merges_failure_is_application_error(tag_service, note_repo, tag_repo, fake_openai):
    await _note(note_repo, tag_repo, NoteCategory.TODO, ("Groceries", 0.9), ("Grocery", 0.9))
    fake_openai.fail(MergeSuggestionOutput)

    with pytest.raises(ApplicationError):
        await tag_service.suggest_merges()


@pytest.mark.asyncio
async def test_merge_matches_names_as_they_were_stored(tag_service, lifecycle, note_repo, store):
    note = await note_repo.create(NoteDraft(content="call the plumber", category=NoteCategory.TODO, user_id=USER_ID))
    await lifecycle.save_tags(note.id, ["To-do"])
    assert store.tag_names(note.id) == ["To-Do"]

    [result] = await tag_service.merge_tags([TagMerge(primary_name="Todo", similar_names=["ToDo", "To-do"])])

    assert result.success is True
    assert result.affected_note_ids == [note.id]
    assert store.tag_names(note.id) == ["Todo"]
