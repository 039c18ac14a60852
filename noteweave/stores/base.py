from typing import Iterable, List, Protocol

import numpy as np

from noteweave.domain.connections import Connection
from noteweave.domain.note import Note, NoteMatch
from noteweave.domain.suggestions import Tag


class NoteStore(Protocol):
    def get_note(self, note_id: str) -> Note | None:
        """Get a note by its ID."""
        ...

    def get_notes_by_ids(self, note_ids: Iterable[str]) -> dict[str, Note]:
        """Get multiple notes by their IDs, returning a dictionary mapping ID to Note."""
        ...

    def get_all_note_ids(self) -> set[str]:
        """Get all note IDs in the store."""
        ...

    def find_notes_by_title(self, title: str) -> List[Note]:
        """Find all notes whose title matches exactly."""
        ...

    def find_notes_by_tags(self, tags: Iterable[str]) -> List[Note]:
        """Find all notes carrying at least one of the given tags."""
        ...

    def list_recent_notes(
        self, limit: int, exclude_ids: Iterable[str] = (), viewer_id: str | None = None
    ) -> List[Note]:
        """List notes visible to the viewer (public notes when no viewer), newest first."""
        ...

    def update_note(self, note: Note) -> None:
        """Add a new note or update an existing one."""
        ...

    def set_embedding(self, note_id: str, embedding: np.ndarray, embedded_text: str) -> bool:
        """Store an embedding computed from `embedded_text`.

        Nothing is written when the note is gone, already has an embedding, or its
        title and body changed since the text was read.

        Returns:
            True if the embedding was stored
        """
        ...

    def delete_note(self, note_id: str) -> None:
        """Delete a note and every connection touching it."""
        ...

    def list_outgoing_connections(self, source_note_id: str) -> List[Connection]:
        """List connections whose source is the given note."""
        ...

    def list_connections_for_note(self, note_id: str) -> List[Connection]:
        """List connections where the note is either source or target."""
        ...

    def get_neighbor_ids(self, note_id: str) -> set[str]:
        """IDs of notes connected to the given note in either direction."""
        ...

    def add_connections(self, connections: Iterable[Connection]) -> List[Connection]:
        """Insert connections whose (source, target) pair does not exist yet.

        Returns:
            The connections that were actually inserted
        """
        ...

    def update_connection_context(
        self, source_note_id: str, target_note_id: str, context: str
    ) -> None:
        """Overwrite the context of an existing connection."""
        ...

    def delete_connection(self, source_note_id: str, target_note_id: str) -> None:
        """Delete a connection if it exists."""
        ...

    def get_tags(self, names: Iterable[str] | None = None) -> List[Tag]:
        """Get tags with their usage counts, all of them when no names are given."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the store to disk."""
        ...

    def clear(self) -> None:
        """Clear all data from the store."""
        ...


class VectorSearch(Protocol):
    def match_notes(self, vector: np.ndarray, threshold: float, count: int) -> List[NoteMatch]:
        """Get up to `count` notes whose embedding similarity is at least `threshold`.

        Results are ordered by similarity, highest first.
        """
        ...
