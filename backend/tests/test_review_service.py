from datetime import timedelta

import pytest

from cosmic_notes.core.errors import ApplicationError, NotFoundError
from cosmic_notes.core.models.note import NoteCategory, NoteDraft
from cosmic_notes.core.schemas.review import WeeklyReviewOutput
from tests.fakes import USER_ID


async def _note(note_repo, content, title="Standup"):
    return await note_repo.create(
        NoteDraft(title=title, content=content, category=NoteCategory.MEETING, zone="work", user_id=USER_ID)
    )


@pytest.mark.asyncio
async def test_review_covers_notes_of_the_window_newest_first(review_service, note_repo, store, fake_openai):
    await _note(note_repo, "kickoff")
    recent = await _note(note_repo, "sprint planning")
    latest = await _note(note_repo, "retro", title=None)
    # the window starts between the first and the second note
    now = recent.created_at + timedelta(days=7) - timedelta(milliseconds=500)

    review = await review_service.generate_weekly_review(USER_ID, now=now)

    prompt = fake_openai.requests[-1]["input"][1]["content"]
    assert "kickoff" not in prompt
    assert prompt.index(f"ID: [{latest.id}]") < prompt.index(f"ID: [{recent.id}]")
    assert "## Untitled (meeting, work)" in prompt
    assert review.note_count == 2
    assert review.period_end == now
    assert review.review == "Busy week, see [[1](/note/1)]."
    assert store.reviews[review.id] == review


@pytest.mark.asyncio
async def test_no_notes_in_window_is_not_found(review_service, note_repo, fake_openai):
    note = await _note(note_repo, "kickoff")

    with pytest.raises(NotFoundError):
        await review_service.generate_weekly_review(USER_ID, now=note.created_at + timedelta(days=8))
    assert fake_openai.calls["WeeklyReviewOutput"] == 0


@pytest.mark.asyncio
async def test_model_failure_or_blank_review_stores_nothing(review_service, note_repo, store, fake_openai):
    note = await _note(note_repo, "kickoff")
    fake_openai.fail(WeeklyReviewOutput)

    with pytest.raises(ApplicationError, match="Failed to generate weekly review"):
        await review_service.generate_weekly_review(USER_ID, now=note.created_at)

    fake_openai.handlers[WeeklyReviewOutput] = lambda _: WeeklyReviewOutput(review="   ")
    with pytest.raises(ApplicationError):
        await review_service.generate_weekly_review(USER_ID, now=note.created_at)
    assert store.reviews == {}


@pytest.mark.asyncio
async def test_reviews_are_paged_newest_first(review_service, note_repo):
    note = await _note(note_repo, "kickoff")
    stored = [await review_service.generate_weekly_review(USER_ID, now=note.created_at) for _ in range(3)]

    first = await review_service.list_reviews(page=1, limit=2)
    second = await review_service.list_reviews(page=2, limit=2)

    assert [r.id for r in first.reviews] == [stored[2].id, stored[1].id]
    assert (first.total_count, first.total_pages, first.has_more) == (3, 2, True)
    assert [r.id for r in second.reviews] == [stored[0].id]
    assert second.has_more is False
    assert (await review_service.latest_review()).id == stored[2].id


@pytest.mark.asyncio
async def test_get_and_delete_unknown_review(review_service, note_repo):
    with pytest.raises(NotFoundError):
        await review_service.latest_review()
    with pytest.raises(NotFoundError):
        await review_service.get_review(42)

    note = await _note(note_repo, "kickoff")
    review = await review_service.generate_weekly_review(USER_ID, now=note.created_at)
    await review_service.delete_review(review.id)

    with pytest.raises(NotFoundError):
        await review_service.delete_review(review.id)
