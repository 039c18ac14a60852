import numpy as np
from fastapi.testclient import TestClient

from noteweave.api import create_app
from noteweave.capabilities import EmbeddingCapability
from noteweave.domain.connections import Connection, ConnectionCreated
from noteweave.embedders.backfill import EmbeddingBackfill
from noteweave.notifications.outbox import NotificationOutbox
from noteweave.stores.local_store import LocalNoteStore
from tests.fakes import FakeEmbedder, RecordingSink

USER1 = {"X-User-Id": "user1"}
USER2 = {"X-User-Id": "user2"}


def test_health_check(test_client: TestClient) -> None:
    response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_save_note_syncs_connections_and_notifies(
    test_client: TestClient,
    note_store: LocalNoteStore,
    outbox: NotificationOutbox,
    recording_sink: RecordingSink,
) -> None:
    """Saving a note links it to mentioned notes and notifies other owners."""
    response = test_client.put(
        "/api/notes/source",
        json={"body": "Read [[Quantum Entanglement]] and [[Relativity]] today. [[Secret Plans]]"},
        headers=USER1,
    )

    assert response.status_code == 200
    assert response.json() == {"note_id": "source", "valid_link_count": 2}
    assert note_store.get_note("source").body.startswith("Read [[Quantum")
    assert [e.recipient_owner_id for e in recording_sink.events] == ["user2"]
    assert outbox.pending() == [], "Events should be dispatched after the save"


def test_save_note_twice_notifies_once(
    test_client: TestClient, recording_sink: RecordingSink
) -> None:
    payload = {"body": "See [[Quantum Entanglement]]."}

    test_client.put("/api/notes/source", json=payload, headers=USER1)
    response = test_client.put("/api/notes/source", json=payload, headers=USER1)

    assert response.json()["valid_link_count"] == 1
    assert len(recording_sink.events) == 1


def test_save_note_updates_fields_and_clears_stale_embedding(
    test_client: TestClient, note_store: LocalNoteStore
) -> None:
    note = note_store.get_note("relativity")
    note_store.update_note(note.model_copy(update={"embedding": np.ones(3)}))

    response = test_client.put(
        "/api/notes/relativity",
        json={"title": "General Relativity", "body": "Gravity", "tags": ["physics"]},
        headers=USER1,
    )

    assert response.status_code == 200
    saved = note_store.get_note("relativity")
    assert saved.title == "General Relativity"
    assert saved.tags == ["physics"]
    assert saved.visibility == "public", "Omitted fields keep their value"
    assert saved.embedding is None


def test_save_note_keeps_embedding_when_text_unchanged(
    test_client: TestClient, note_store: LocalNoteStore
) -> None:
    note = note_store.get_note("relativity")
    note_store.update_note(note.model_copy(update={"embedding": np.ones(3)}))

    test_client.put(
        "/api/notes/relativity", json={"body": note.body, "tags": ["physics"]}, headers=USER1
    )

    assert note_store.get_note("relativity").embedding is not None


def test_save_note_errors(test_client: TestClient) -> None:
    payload = {"body": "text"}

    assert test_client.put("/api/notes/missing", json=payload, headers=USER1).status_code == 404
    assert test_client.put("/api/notes/quantum", json=payload, headers=USER1).status_code == 403
    assert test_client.put("/api/notes/source", json=payload).status_code == 422
    assert test_client.put("/api/notes/source", json={}, headers=USER1).status_code == 422


def test_sync_endpoint_uses_stored_text(
    test_client: TestClient, note_store: LocalNoteStore
) -> None:
    note = note_store.get_note("source")
    note_store.update_note(note.model_copy(update={"body": "Links to [[My Draft]]."}))

    response = test_client.post("/api/notes/source/sync", headers=USER1)

    assert response.status_code == 200
    assert response.json()["valid_link_count"] == 1
    assert test_client.post("/api/notes/source/sync", headers=USER2).status_code == 403


def test_connections_endpoint(test_client: TestClient) -> None:
    test_client.put(
        "/api/notes/source", json={"body": "About [[Quantum Entanglement]]."}, headers=USER1
    )

    response = test_client.get("/api/notes/quantum/connections")

    assert response.status_code == 200
    data = response.json()
    assert data["outgoing"] == []
    assert len(data["incoming"]) == 1
    assert data["incoming"][0]["source_note_id"] == "source"
    assert data["incoming"][0]["context"] == "About [[Quantum Entanglement]]."
    assert test_client.get("/api/notes/missing/connections").status_code == 404


def test_suggestions_respect_viewer(test_client: TestClient) -> None:
    response = test_client.post(
        "/api/suggestions", json={"note_id": "source", "text": "short"}, headers=USER1
    )

    assert response.status_code == 200
    ids = {s["id"] for s in response.json()}
    assert ids == {"quantum", "own_private", "relativity"}
    assert all(s["score"] == 0.5 for s in response.json())

    anonymous = test_client.post("/api/suggestions", json={"note_id": "source", "text": "short"})
    assert {s["id"] for s in anonymous.json()} == {"quantum", "relativity"}


def test_suggestions_exclude_connected_notes(test_client: TestClient) -> None:
    test_client.put("/api/notes/source", json={"body": "See [[Relativity]]."}, headers=USER1)

    response = test_client.post(
        "/api/suggestions", json={"note_id": "source", "text": "short"}, headers=USER1
    )

    assert "relativity" not in {s["id"] for s in response.json()}


def test_suggestions_limit(test_client: TestClient) -> None:
    response = test_client.post("/api/suggestions", json={"text": "short", "limit": 1})
    assert response.status_code == 200
    assert len(response.json()) == 1

    assert test_client.post("/api/suggestions", json={"limit": 0}).json() == []
    assert test_client.post("/api/suggestions", json={"limit": 51}).status_code == 422


def test_pending_notifications_are_flushed_on_shutdown(
    note_store: LocalNoteStore,
    synchronizer,
    outbox: NotificationOutbox,
    recording_sink: RecordingSink,
    make_ranker,
) -> None:
    app = create_app(
        note_store=note_store,
        synchronizer=synchronizer,
        ranker=make_ranker(note_store),
        outbox=outbox,
        sink=recording_sink,
    )
    outbox.publish(
        ConnectionCreated(
            recipient_owner_id="user2",
            source_note_id="source",
            target_note_id="quantum",
            actor_id="user1",
        )
    )

    with TestClient(app):
        assert recording_sink.events == []

    assert len(recording_sink.events) == 1
    assert outbox.pending() == []


def test_connections_hide_notes_the_viewer_cannot_see(
    test_client: TestClient, note_store: LocalNoteStore, make_note
) -> None:
    """A private note's edges, and its linking sentence, never reach other users."""
    note_store.update_note(
        make_note("diary", title="Diary", owner_id="user3", visibility="private")
    )
    note_store.add_connections(
        [
            Connection(
                source_note_id="diary",
                target_note_id="quantum",
                context="My secret thoughts on [[Quantum Entanglement]].",
                created_by="user3",
            ),
            Connection(source_note_id="source", target_note_id="quantum", created_by="user1"),
        ]
    )

    stranger = test_client.get("/api/notes/quantum/connections", headers={"X-User-Id": "user9"})
    assert stranger.status_code == 200
    assert [c["source_note_id"] for c in stranger.json()["incoming"]] == ["source"]

    owner = test_client.get("/api/notes/quantum/connections", headers={"X-User-Id": "user3"})
    assert {c["source_note_id"] for c in owner.json()["incoming"]} == {"diary", "source"}

    assert test_client.get("/api/notes/diary/connections").status_code == 404
    assert (
        test_client.get("/api/notes/diary/connections", headers=USER2).status_code == 404
    ), "A private note looks missing to other users"
    own = test_client.get("/api/notes/diary/connections", headers={"X-User-Id": "user3"})
    assert own.status_code == 200
    assert [c["target_note_id"] for c in own.json()["outgoing"]] == ["quantum"]


def test_backfill_endpoint_embeds_live_store(
    note_store: LocalNoteStore,
    synchronizer,
    outbox: NotificationOutbox,
    recording_sink: RecordingSink,
    make_ranker,
) -> None:
    backfill = EmbeddingBackfill(
        note_store=note_store, embeddings=EmbeddingCapability(FakeEmbedder(), timeout=1.0)
    )
    app = create_app(
        note_store=note_store,
        synchronizer=synchronizer,
        ranker=make_ranker(note_store),
        outbox=outbox,
        sink=recording_sink,
        backfill=backfill,
    )

    with TestClient(app) as client:
        response = client.post("/api/embeddings/backfill", json={"note_ids": ["quantum"]})
        assert response.status_code == 202
        assert note_store.get_note("quantum").embedding is not None
        assert note_store.get_note("relativity").embedding is None

        assert client.post("/api/embeddings/backfill").status_code == 202
        assert all(
            note_store.get_note(note_id).embedding is not None
            for note_id in note_store.get_all_note_ids()
        )


def test_backfill_endpoint_without_embedder(test_client: TestClient) -> None:
    assert test_client.post("/api/embeddings/backfill").status_code == 503


def test_shutdown_closes_capability_pools(
    note_store: LocalNoteStore,
    synchronizer,
    outbox: NotificationOutbox,
    recording_sink: RecordingSink,
    make_ranker,
) -> None:
    ranker = make_ranker(note_store, embedder=FakeEmbedder(), vector_search=note_store)
    backfill = EmbeddingBackfill(
        note_store=note_store, embeddings=EmbeddingCapability(FakeEmbedder())
    )
    app = create_app(
        note_store=note_store,
        synchronizer=synchronizer,
        ranker=ranker,
        outbox=outbox,
        sink=recording_sink,
        backfill=backfill,
    )

    with TestClient(app):
        assert not ranker.embeddings.closed

    assert ranker.embeddings.closed
    assert ranker.vector_search.closed
    assert backfill.embeddings.closed
