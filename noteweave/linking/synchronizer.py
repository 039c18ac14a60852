"""Reconciliation of a note's outgoing connections with the wikilinks in its text."""

import logging

from noteweave.domain.connections import Connection, ConnectionCreated
from noteweave.domain.note import Note
from noteweave.notifications.outbox import NotificationOutbox
from noteweave.stores.base import NoteStore

from .content_extractor import ContentExtractor
from .resolver import TargetResolver

logger = logging.getLogger(__name__)


class GraphSynchronizer:
    """Keeps the stored connection graph in line with note text.

    Connections are derived from text, so every step is best-effort: a failure
    resolving one mention or writing one connection is logged and the remaining
    work still runs. Running sync again with the same text converges to the same
    connection set without publishing new events.
    """

    def __init__(
        self,
        *,
        note_store: NoteStore,
        outbox: NotificationOutbox,
        resolver: TargetResolver | None = None,
    ):
        """Initialize the synchronizer.

        Args:
            note_store: Store holding notes and connections
            outbox: Outbox receiving connection-created events
            resolver: Resolver for wikilink titles, built from the store if omitted
        """
        self.note_store = note_store
        self.outbox = outbox
        self.resolver = resolver or TargetResolver(note_store)
        self.content_extractor = ContentExtractor()

    def sync(self, source_note_id: str, full_text: str, acting_user_id: str) -> int:
        """Reconcile outgoing connections of a note with the wikilinks in its text.

        Args:
            source_note_id: Note whose text was saved
            full_text: Current full text of the note
            acting_user_id: User who saved the note

        Returns:
            Number of distinct resolved, visibility-eligible targets
        """
        existing = self._load_existing(source_note_id)
        found_targets, contexts = self._resolve_targets(source_note_id, full_text, acting_user_id)

        staged = []
        for target_id, target in found_targets.items():
            context = contexts[target_id]
            if target_id in existing:
                self._update_context(source_note_id, target_id, context)
            else:
                staged.append(
                    Connection(
                        source_note_id=source_note_id,
                        target_note_id=target_id,
                        context=context,
                        created_by=acting_user_id,
                    )
                )

        created = self._persist_new(staged)
        for connection in created:
            target = found_targets[connection.target_note_id]
            if target.owner_id != acting_user_id:
                self.outbox.publish(
                    ConnectionCreated(
                        recipient_owner_id=target.owner_id,
                        source_note_id=source_note_id,
                        target_note_id=target.id,
                        actor_id=acting_user_id,
                    )
                )

        stale_ids = [target_id for target_id in existing if target_id not in found_targets]
        for target_id in stale_ids:
            self._delete(source_note_id, target_id)

        logger.info(
            f"Synced note {source_note_id}: {len(found_targets)} links, "
            f"{len(created)} created, {len(stale_ids)} removed"
        )
        return len(found_targets)

    def _load_existing(self, source_note_id: str) -> dict[str, Connection]:
        try:
            return {
                c.target_note_id: c
                for c in self.note_store.list_outgoing_connections(source_note_id)
            }
        except Exception:
            logger.exception(f"Failed to load connections for note {source_note_id}")
            return {}

    def _resolve_targets(
        self, source_note_id: str, full_text: str, acting_user_id: str
    ) -> tuple[dict[str, Note], dict[str, str]]:
        """Resolve every mention, keeping distinct targets and the last context seen for each."""
        found_targets: dict[str, Note] = {}
        contexts: dict[str, str] = {}

        for mention in self.content_extractor.extract_mentions(full_text):
            try:
                target = self.resolver.resolve(mention.title, acting_user_id, source_note_id)
            except Exception:
                logger.exception(f"Failed to resolve wikilink: {mention.title}")
                continue
            if target is None:
                continue

            found_targets[target.id] = target
            contexts[target.id] = self.content_extractor.extract_context(
                full_text, mention.start_index, len(mention.match_text)
            )

        return found_targets, contexts

    def _update_context(self, source_note_id: str, target_id: str, context: str) -> None:
        try:
            self.note_store.update_connection_context(source_note_id, target_id, context)
        except Exception:
            logger.exception(f"Failed to update connection {source_note_id} -> {target_id}")

    def _persist_new(self, staged: list[Connection]) -> list[Connection]:
        if not staged:
            return []
        try:
            return self.note_store.add_connections(staged)
        except Exception:
            logger.exception(f"Failed to insert {len(staged)} connections")
            return []

    def _delete(self, source_note_id: str, target_id: str) -> None:
        try:
            self.note_store.delete_connection(source_note_id, target_id)
        except Exception:
            logger.exception(f"Failed to delete connection {source_note_id} -> {target_id}")
