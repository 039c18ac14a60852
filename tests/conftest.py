from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from noteweave.api import create_app
from noteweave.capabilities import EmbeddingCapability, VectorSearchCapability
from noteweave.domain.note import Note
from noteweave.linking import GraphSynchronizer
from noteweave.notifications.outbox import NotificationOutbox
from noteweave.stores.local_store import LocalNoteStore
from noteweave.suggestions.ranker import SuggestionRanker
from tests.fakes import RecordingSink

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

NoteFactory = Callable[..., Note]


@pytest.fixture
def make_note() -> NoteFactory:
    """Build notes with sensible defaults; `age_days` sets created_at relative to NOW."""

    def _make_note(
        note_id: str,
        *,
        title: str | None = None,
        owner_id: str = "user1",
        visibility: str = "public",
        body: str = "",
        tags: list[str] | None = None,
        embedding: list[float] | None = None,
        age_days: float = 30,
    ) -> Note:
        return Note(
            id=note_id,
            owner_id=owner_id,
            visibility=visibility,
            title=title if title is not None else note_id.replace("_", " ").title(),
            body=body,
            tags=tags or [],
            embedding=embedding,
            created_at=NOW - timedelta(days=age_days),
        )

    return _make_note


@pytest.fixture
def test_notes(make_note: NoteFactory) -> dict[str, Note]:
    """A small graph-less corpus: user1 writes, user2 owns a public and a private note."""
    notes = [
        make_note("source", title="Reading Log", owner_id="user1"),
        make_note("quantum", title="Quantum Entanglement", owner_id="user2"),
        make_note("own_private", title="My Draft", owner_id="user1", visibility="private"),
        make_note("secret", title="Secret Plans", owner_id="user2", visibility="private"),
        make_note("relativity", title="Relativity", owner_id="user1"),
    ]
    return {note.id: note for note in notes}


@pytest.fixture
def note_store(test_notes: dict[str, Note]) -> LocalNoteStore:
    return LocalNoteStore.from_data(notes=test_notes)


@pytest.fixture
def outbox() -> NotificationOutbox:
    return NotificationOutbox()


@pytest.fixture
def synchronizer(note_store: LocalNoteStore, outbox: NotificationOutbox) -> GraphSynchronizer:
    return GraphSynchronizer(note_store=note_store, outbox=outbox)


@pytest.fixture
def make_ranker() -> Generator[Callable[..., SuggestionRanker], None, None]:
    """Build a ranker with a fixed clock and short capability timeouts."""
    capabilities = []

    def _make_ranker(store, embedder=None, vector_search=None, **kwargs) -> SuggestionRanker:
        embeddings = EmbeddingCapability(embedder, timeout=0.2)
        search = VectorSearchCapability(vector_search, timeout=0.2)
        capabilities.extend([embeddings, search])
        return SuggestionRanker(
            note_store=store,
            embeddings=embeddings,
            vector_search=search,
            clock=lambda: NOW,
            **kwargs,
        )

    yield _make_ranker

    for capability in capabilities:
        capability.close()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def test_client(
    note_store: LocalNoteStore,
    synchronizer: GraphSynchronizer,
    outbox: NotificationOutbox,
    recording_sink: RecordingSink,
    make_ranker: Callable[..., SuggestionRanker],
) -> TestClient:
    """Create test client wired to in-memory fakes, without an embedder."""
    app = create_app(
        note_store=note_store,
        synchronizer=synchronizer,
        ranker=make_ranker(note_store, vector_search=note_store),
        outbox=outbox,
        sink=recording_sink,
    )
    return TestClient(app)
