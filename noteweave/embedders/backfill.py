"""Lazy embedding backfill for notes saved without a vector."""

from pathlib import Path
from typing import Iterable

from loguru import logger

from noteweave.capabilities import EmbeddingCapability, Unavailable
from noteweave.stores.base import NoteStore
from noteweave.stores.local_store import LocalNoteStore


class EmbeddingBackfill:
    """Fills in missing note embeddings from each note's title and body.

    Embeddings are written through `NoteStore.set_embedding`, so a note saved
    with new text while its embedding was being computed keeps its new text and
    stays without an embedding until the next run.
    """

    def __init__(self, *, note_store: NoteStore, embeddings: EmbeddingCapability):
        self.note_store = note_store
        self.embeddings = embeddings

    def update_note_embedding(self, note_id: str) -> bool:
        """Compute and store the embedding of a single note.

        Notes that already have an embedding are left untouched.

        Args:
            note_id: ID of the note to update

        Returns:
            True if the note has an embedding afterwards
        """
        note = self.note_store.get_note(note_id)
        if note is None:
            logger.error(f"[backfill] Note {note_id} not found")
            return False

        if note.embedding is not None:
            logger.debug(f"[backfill] Note {note_id} already has embedding, skipping")
            return True

        text = note.embedding_text
        result = self.embeddings.embed(text)
        if isinstance(result, Unavailable):
            logger.warning(f"[backfill] No embedding for note {note_id}: {result.reason}")
            return False

        if not self.note_store.set_embedding(note_id, result, text):
            logger.info(f"[backfill] Note {note_id} changed while embedding, skipped")
            return False
        return True

    def backfill(self, note_ids: Iterable[str] | None = None) -> int:
        """Embed every given note (all notes when omitted) that has no embedding yet.

        Returns:
            Number of notes that received a new embedding
        """
        if note_ids is None:
            note_ids = self.note_store.get_all_note_ids()
        notes = list(self.note_store.get_notes_by_ids(note_ids).values())

        missing = [note.id for note in notes if note.embedding is None]
        logger.info(f"[backfill] {len(missing)} of {len(notes)} notes need embeddings")

        updated = sum(1 for note_id in missing if self.update_note_embedding(note_id))
        logger.info(f"[backfill] Embedded {updated} notes, {len(missing) - updated} skipped")
        return updated


def backfill_file(
    filepath: str | Path,
    embeddings: EmbeddingCapability,
    note_ids: Iterable[str] | None = None,
) -> int:
    """Backfill a store file directly, for when no server holds it open.

    Embeddings are computed from one read of the file, then merged into a fresh
    read right before saving, so edits written to the file in the meantime
    survive and notes whose text changed are skipped.

    Returns:
        Number of notes that received a new embedding
    """
    snapshot = LocalNoteStore(filepath=filepath)
    if note_ids is None:
        note_ids = snapshot.get_all_note_ids()

    computed = {}
    for note in snapshot.get_notes_by_ids(note_ids).values():
        if note.embedding is not None:
            continue
        text = note.embedding_text
        result = embeddings.embed(text)
        if isinstance(result, Unavailable):
            logger.warning(f"[backfill] No embedding for note {note.id}: {result.reason}")
            continue
        computed[note.id] = (result, text)

    current = LocalNoteStore(filepath=filepath)
    updated = sum(
        1
        for note_id, (embedding, text) in computed.items()
        if current.set_embedding(note_id, embedding, text)
    )
    if updated:
        current.save()
    logger.info(f"[backfill] Embedded {updated} notes in {filepath}")
    return updated
