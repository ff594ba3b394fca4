import pytest

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ApplicationError, ExtractionError, UserError
from cosmic_notes.core.models.note import NoteCategory
from cosmic_notes.core.schemas.tagging import TagExtractionOutput, TagSuggestion
from cosmic_notes.core.services.tag_extraction_service import apply_denylist, extract_tags, find_hashtags


@pytest.mark.asyncio
async def test_model_tags_are_capitalized_deduplicated_and_sorted(fake_openai):
    fake_openai.script_tags(("groceries", 0.7), ("Groceries", 0.9), ("shopping", 0.8))

    tags = await extract_tags("buy milk and bread", NoteCategory.TODO, client=fake_openai)

    assert tags == [
        TagSuggestion(name="Groceries", confidence=0.9),
        TagSuggestion(name="Shopping", confidence=0.8),
    ]


@pytest.mark.asyncio
async def test_tags_containing_denylisted_token_are_dropped(fake_openai):
    fake_openai.script_tags(("X20", 0.99), ("ProjectX20", 0.95), ("x20-notes", 0.9), ("Groceries", 0.8))

    tags = await extract_tags("buy milk", NoteCategory.TODO, client=fake_openai)

    assert [t.name for t in tags] == ["Groceries"]
    assert all("x20" not in t.name.lower() for t in tags)


@pytest.mark.asyncio
async def test_confidence_threshold_filters_low_scores(fake_openai):
    fake_openai.script_tags(("Groceries", 0.9), ("Dairy", 0.5), ("Errands", 0.3))

    default = await extract_tags("buy milk", NoteCategory.TODO, client=fake_openai)
    strict = await extract_tags("buy milk", NoteCategory.TODO, 0.8, client=fake_openai)

    assert [t.name for t in default] == ["Groceries", "Dairy"]
    assert [t.name for t in strict] == ["Groceries"]


@pytest.mark.asyncio
async def test_hashtags_become_full_confidence_tags(fake_openai):
    fake_openai.script_tags(("groceries", 0.6))

    tags = await extract_tags("buy milk #groceries #weekend-plans", NoteCategory.TODO, client=fake_openai)

    assert TagSuggestion(name="Groceries", confidence=1.0) in tags
    assert TagSuggestion(name="Weekend-Plans", confidence=1.0) in tags


def test_find_hashtags_ignores_anchors_and_numbers():
    assert find_hashtags("see #1 and page#anchor, but #Ideas and #ideas") == ["Ideas"]


@pytest.mark.asyncio
async def test_blank_content_is_a_user_error_without_model_call(fake_openai):
    with pytest.raises(UserError):
        await extract_tags("   ", NoteCategory.TODO, client=fake_openai)
    assert fake_openai.calls["TagExtractionOutput"] == 0


@pytest.mark.asyncio
async def test_model_failure_raises_extraction_error(fake_openai):
    fake_openai.fail(TagExtractionOutput)

    with pytest.raises(ExtractionError) as exc_info:
        await extract_tags("buy milk", NoteCategory.TODO, client=fake_openai)

    assert isinstance(exc_info.value, ApplicationError)


@pytest.mark.asyncio
async def test_category_selects_prompt_and_model(fake_openai):
    await extract_tags("met with the design team", NoteCategory.MEETING, client=fake_openai)

    request = fake_openai.requests[-1]
    assert request["model"] == settings.tagging_model
    assert "records a meeting" in request["input"][0]["content"]
    assert "met with the design team" in request["input"][1]["content"]


def test_apply_denylist_with_custom_tokens():
    tags = [TagSuggestion(name="Draft", confidence=1.0), TagSuggestion(name="Final", confidence=1.0)]
    assert [t.name for t in apply_denylist(tags, ["raf"])] == ["Final"]


@pytest.mark.asyncio
async def test_known_tags_are_offered_for_reuse(fake_openai):
    fake_openai.script_tags(("Groceries", 0.9))

    await extract_tags("buy milk", NoteCategory.TODO, vocabulary=["Groceries", "Hardware"], client=fake_openai)
    system, prompt = (m["content"] for m in fake_openai.requests[-1]["input"])

    assert "Prefer reusing a tag from tag_vocab" in system
    assert prompt.endswith("tag_vocab: Groceries, Hardware")

    await extract_tags("buy milk", NoteCategory.TODO, client=fake_openai)
    system, prompt = (m["content"] for m in fake_openai.requests[-1]["input"])

    assert "tag_vocab" not in system
    assert "tag_vocab" not in prompt
