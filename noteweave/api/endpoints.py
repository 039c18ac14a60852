from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException
from loguru import logger

from noteweave.api.schemas import (
    BackfillRequest,
    ConnectionsResponse,
    SaveNoteRequest,
    SuggestionRequest,
    SyncResponse,
)
from noteweave.config import settings
from noteweave.domain.note import Note
from noteweave.domain.suggestions import Suggestion
from noteweave.embedders.backfill import EmbeddingBackfill
from noteweave.linking import GraphSynchronizer
from noteweave.notifications.base import NotificationSink
from noteweave.notifications.outbox import NotificationOutbox
from noteweave.stores.base import NoteStore
from noteweave.suggestions.ranker import SuggestionRanker


def _get_note_or_404(note_store: NoteStore, note_id: str) -> Note:
    note = note_store.get_note(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


def _sync_and_notify(
    *,
    note: Note,
    acting_user_id: str,
    synchronizer: GraphSynchronizer,
    outbox: NotificationOutbox,
    sink: NotificationSink,
) -> SyncResponse:
    valid_link_count = synchronizer.sync(note.id, note.body, acting_user_id)
    outbox.dispatch(sink)
    return SyncResponse(note_id=note.id, valid_link_count=valid_link_count)


def _create_save_note_endpoint(
    note_store: NoteStore,
    synchronizer: GraphSynchronizer,
    outbox: NotificationOutbox,
    sink: NotificationSink,
):
    """Create the note save endpoint handler."""

    def save_note(note_id: str, payload: SaveNoteRequest, x_user_id: str = Header()):
        note = _get_note_or_404(note_store, note_id)
        if note.owner_id != x_user_id:
            raise HTTPException(status_code=403, detail="Only the owner can edit this note")

        updates = payload.model_dump(exclude_none=True)
        if updates.get("title", note.title) != note.title or updates["body"] != note.body:
            updates["embedding"] = None  # stale, the backfill recomputes it

        updated = note.model_copy(update=updates)
        note_store.update_note(updated)
        logger.info(f"Saved note {note_id}")

        return _sync_and_notify(
            note=updated,
            acting_user_id=x_user_id,
            synchronizer=synchronizer,
            outbox=outbox,
            sink=sink,
        )

    return save_note


def _create_sync_endpoint(
    note_store: NoteStore,
    synchronizer: GraphSynchronizer,
    outbox: NotificationOutbox,
    sink: NotificationSink,
):
    """Create the endpoint re-syncing a note's connections from its current text."""

    def sync_note(note_id: str, x_user_id: str = Header()):
        note = _get_note_or_404(note_store, note_id)
        if note.owner_id != x_user_id:
            raise HTTPException(status_code=403, detail="Only the owner can sync this note")
        return _sync_and_notify(
            note=note,
            acting_user_id=x_user_id,
            synchronizer=synchronizer,
            outbox=outbox,
            sink=sink,
        )

    return sync_note


def _create_connections_endpoint(note_store: NoteStore):
    """Create the endpoint listing a note's connections."""

    def get_connections(
        note_id: str, x_user_id: Optional[str] = Header(None)
    ) -> ConnectionsResponse:
        note = _get_note_or_404(note_store, note_id)
        if not note.is_visible_to(x_user_id):
            raise HTTPException(status_code=404, detail="Note not found")

        connections = note_store.list_connections_for_note(note_id)
        other_ids = {
            c.target_note_id if c.source_note_id == note_id else c.source_note_id
            for c in connections
        }
        visible = {
            other.id
            for other in note_store.get_notes_by_ids(other_ids).values()
            if other.is_visible_to(x_user_id)
        }
        return ConnectionsResponse(
            outgoing=[
                c
                for c in connections
                if c.source_note_id == note_id and c.target_note_id in visible
            ],
            incoming=[
                c
                for c in connections
                if c.target_note_id == note_id and c.source_note_id in visible
            ],
        )

    return get_connections


def _create_suggestions_endpoint(ranker: SuggestionRanker):
    """Create the related-notes suggestions endpoint handler."""

    def suggest(
        payload: SuggestionRequest, x_user_id: Optional[str] = Header(None)
    ) -> List[Suggestion]:
        limit = payload.limit if payload.limit is not None else settings.suggestion_default_limit
        return ranker.suggest(
            payload.note_id, payload.text, payload.tags, limit, viewer_id=x_user_id
        )

    return suggest


def _create_backfill_endpoint(backfill: EmbeddingBackfill | None):
    """Create the endpoint scheduling an embedding backfill on the live store."""

    def schedule_backfill(
        background_tasks: BackgroundTasks, payload: Optional[BackfillRequest] = None
    ):
        if backfill is None or not backfill.embeddings.available:
            raise HTTPException(status_code=503, detail="No embedding provider configured")
        background_tasks.add_task(backfill.backfill, payload.note_ids if payload else None)
        logger.info("Scheduled embedding backfill")
        return {"status": "scheduled"}

    return schedule_backfill


def get_endpoints_router(
    *,
    note_store: NoteStore,
    synchronizer: GraphSynchronizer,
    ranker: SuggestionRanker,
    outbox: NotificationOutbox,
    sink: NotificationSink,
    backfill: EmbeddingBackfill | None = None,
) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    router.put("/api/notes/{note_id}", response_model=SyncResponse)(
        _create_save_note_endpoint(note_store, synchronizer, outbox, sink)
    )
    router.post("/api/notes/{note_id}/sync", response_model=SyncResponse)(
        _create_sync_endpoint(note_store, synchronizer, outbox, sink)
    )
    router.get("/api/notes/{note_id}/connections", response_model=ConnectionsResponse)(
        _create_connections_endpoint(note_store)
    )
    router.post("/api/suggestions", response_model=List[Suggestion])(
        _create_suggestions_endpoint(ranker)
    )
    router.post("/api/embeddings/backfill", status_code=202)(
        _create_backfill_endpoint(backfill)
    )

    return router
