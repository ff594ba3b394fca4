"""Common fixtures: environment for Settings, in-memory store and wired services."""
import os

# Settings are read at import time; these must exist before cosmic_notes is imported.
os.environ.setdefault("APP_SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("APP_SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("APP_SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("APP_OPENAI_API_KEY", "sk-test")

import pytest  # noqa: E402

from cosmic_notes.core.services.cluster_service import ClusterService  # noqa: E402
from cosmic_notes.core.services.lifecycle_service import NoteLifecycleService  # noqa: E402
from cosmic_notes.core.services.note_locks import NoteLockRegistry  # noqa: E402
from cosmic_notes.core.services.review_service import ReviewService  # noqa: E402
from cosmic_notes.core.services.tag_service import TagService  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeClusterRepository,
    FakeNoteRepository,
    FakeOpenAI,
    FakeReviewRepository,
    FakeTagRepository,
    FakeTodoRepository,
    InMemoryStore,
)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def note_repo(store):
    return FakeNoteRepository(store)


@pytest.fixture
def tag_repo(store):
    return FakeTagRepository(store)


@pytest.fixture
def cluster_repo(store):
    return FakeClusterRepository(store)


@pytest.fixture
def todo_repo(store):
    return FakeTodoRepository(store)


@pytest.fixture
def cluster_service(note_repo, tag_repo, cluster_repo, fake_openai):
    return ClusterService(note_repo, tag_repo, cluster_repo, client=fake_openai, min_notes=2)


@pytest.fixture
def lifecycle(note_repo, tag_repo, cluster_service, fake_openai):
    return NoteLifecycleService(
        note_repo,
        tag_repo,
        cluster_service,
        client=fake_openai,
        locks=NoteLockRegistry(),
    )


@pytest.fixture
def tag_service(note_repo, tag_repo, cluster_repo, todo_repo, cluster_service, fake_openai):
    return TagService(note_repo, tag_repo, cluster_repo, todo_repo, cluster_service, client=fake_openai)


@pytest.fixture
def review_repo(store):
    return FakeReviewRepository(store)


@pytest.fixture
def review_service(note_repo, review_repo, fake_openai):
    return ReviewService(note_repo, review_repo, client=fake_openai)
