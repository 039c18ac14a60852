import json
import threading
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List

import numpy as np

from noteweave.domain.connections import Connection
from noteweave.domain.note import Note, NoteMatch, utc_now
from noteweave.domain.suggestions import Tag
from noteweave.stores.base import NoteStore, VectorSearch


class LocalNoteStore(NoteStore, VectorSearch):
    """Local note store that keeps notes, connections and embeddings in a JSON file.

    Reads and mutations share a single lock, which is what guarantees at most one
    connection per (source, target) pair when syncs for the same note interleave.
    """

    def __init__(self, filepath: str | Path | None = None, autosave: bool = False) -> None:
        """Initialize LocalNoteStore.

        Args:
            filepath: Path to the store file. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, creates empty store in memory only.
            autosave: Save to `filepath` after every mutation.
        """
        self._filepath = str(filepath) if filepath else None
        self._autosave = autosave
        self._lock = threading.RLock()
        self._notes: Dict[str, Note] = {}
        self._connections: Dict[tuple[str, str], Connection] = {}

        if self._filepath and Path(self._filepath).exists():
            with open(self._filepath, "r") as f:
                data = json.load(f)
            self._notes = {
                note_id: Note(**note_data) for note_id, note_data in data["notes"].items()
            }
            for connection_data in data.get("connections", []):
                connection = Connection(**connection_data)
                self._connections[connection.key] = connection

    @classmethod
    def from_data(
        cls,
        notes: Dict[str, Note] | None = None,
        connections: Iterable[Connection] | None = None,
    ) -> "LocalNoteStore":
        """Create LocalNoteStore from provided data (useful for testing).

        Args:
            notes: Notes dictionary
            connections: Connections to preload

        Returns:
            LocalNoteStore instance with provided data
        """
        instance = cls(filepath=None)
        instance._notes = dict(notes or {})
        instance._connections = {c.key: c for c in connections or []}
        return instance

    def get_note(self, note_id: str) -> Note | None:
        """Get a note by its ID."""
        return self._notes.get(note_id)

    def get_notes_by_ids(self, note_ids: Iterable[str]) -> dict[str, Note]:
        """Get multiple notes by their IDs, returning a dictionary mapping ID to Note."""
        return {note_id: self._notes[note_id] for note_id in note_ids if note_id in self._notes}

    def get_all_note_ids(self) -> set[str]:
        """Get all note IDs in the store."""
        with self._lock:
            return set(self._notes.keys())

    def find_notes_by_title(self, title: str) -> List[Note]:
        """Find all notes whose title matches exactly."""
        with self._lock:
            return [note for note in self._notes.values() if note.title == title]

    def find_notes_by_tags(self, tags: Iterable[str]) -> List[Note]:
        """Find all notes carrying at least one of the given tags."""
        wanted = set(tags)
        if not wanted:
            return []
        with self._lock:
            return [note for note in self._notes.values() if wanted.intersection(note.tags)]

    def list_recent_notes(
        self, limit: int, exclude_ids: Iterable[str] = (), viewer_id: str | None = None
    ) -> List[Note]:
        """List notes visible to the viewer (public notes when no viewer), newest first."""
        excluded = set(exclude_ids)
        with self._lock:
            notes = [
                note
                for note in self._notes.values()
                if note.id not in excluded and note.is_visible_to(viewer_id)
            ]
        notes.sort(key=lambda note: note.created_at, reverse=True)
        return notes[:limit]

    def update_note(self, note: Note) -> None:
        """Add a new note or update an existing one."""
        with self._lock:
            self._notes[note.id] = note
            self._autosave_if_enabled()

    def set_embedding(self, note_id: str, embedding: np.ndarray, embedded_text: str) -> bool:
        """Store an embedding unless the note changed since `embedded_text` was read."""
        with self._lock:
            note = self._notes.get(note_id)
            if note is None or note.embedding is not None:
                return False
            if note.embedding_text != embedded_text:
                return False
            self._notes[note_id] = note.model_copy(update={"embedding": embedding})
            self._autosave_if_enabled()
        return True

    def delete_note(self, note_id: str) -> None:
        """Delete a note and every connection touching it."""
        with self._lock:
            self._notes.pop(note_id, None)
            for key in [key for key in self._connections if note_id in key]:
                del self._connections[key]
            self._autosave_if_enabled()

    def list_outgoing_connections(self, source_note_id: str) -> List[Connection]:
        """List connections whose source is the given note."""
        with self._lock:
            return [c for c in self._connections.values() if c.source_note_id == source_note_id]

    def list_connections_for_note(self, note_id: str) -> List[Connection]:
        """List connections where the note is either source or target."""
        with self._lock:
            return [c for key, c in self._connections.items() if note_id in key]

    def get_neighbor_ids(self, note_id: str) -> set[str]:
        """IDs of notes connected to the given note in either direction."""
        neighbors = set()
        with self._lock:
            for source_id, target_id in self._connections:
                if source_id == note_id:
                    neighbors.add(target_id)
                elif target_id == note_id:
                    neighbors.add(source_id)
        return neighbors

    def add_connections(self, connections: Iterable[Connection]) -> List[Connection]:
        """Insert connections whose (source, target) pair does not exist yet."""
        created = []
        with self._lock:
            for connection in connections:
                if connection.key in self._connections:
                    continue
                self._connections[connection.key] = connection
                created.append(connection)
            if created:
                self._autosave_if_enabled()
        return created

    def update_connection_context(
        self, source_note_id: str, target_note_id: str, context: str
    ) -> None:
        """Overwrite the context of an existing connection."""
        with self._lock:
            key = (source_note_id, target_note_id)
            existing = self._connections.get(key)
            if existing is None:
                raise KeyError(f"Connection {source_note_id} -> {target_note_id} not found")
            self._connections[key] = existing.model_copy(
                update={"context": context, "updated_at": utc_now()}
            )
            self._autosave_if_enabled()

    def delete_connection(self, source_note_id: str, target_note_id: str) -> None:
        """Delete a connection if it exists."""
        with self._lock:
            if self._connections.pop((source_note_id, target_note_id), None) is not None:
                self._autosave_if_enabled()

    def get_tags(self, names: Iterable[str] | None = None) -> List[Tag]:
        """Get tags with their usage counts, all of them when no names are given."""
        with self._lock:
            counts = Counter(tag for note in self._notes.values() for tag in set(note.tags))
        wanted = sorted(counts) if names is None else list(dict.fromkeys(names))
        return [Tag(name=name, usage_count=counts.get(name, 0)) for name in wanted]

    def match_notes(self, vector: np.ndarray, threshold: float, count: int) -> List[NoteMatch]:
        """Get the notes closest to an input vector by cosine similarity."""
        input_vector = np.asarray(vector, dtype=np.float32)
        input_norm = np.linalg.norm(input_vector)
        if input_norm == 0:
            return []

        with self._lock:
            notes = list(self._notes.values())

        matches = []
        for note in notes:
            if note.embedding is None or note.embedding.shape != input_vector.shape:
                continue
            note_norm = np.linalg.norm(note.embedding)
            if note_norm == 0:
                continue
            similarity = float(np.dot(input_vector, note.embedding) / (input_norm * note_norm))
            if similarity >= threshold:
                matches.append(NoteMatch(note_id=note.id, similarity=similarity))

        matches.sort(key=lambda m: m.similarity, reverse=True)
        return matches[:count]

    def save(self, filepath: str | None = None) -> None:
        """Save the store to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = filepath or self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )

        with self._lock:
            data = {
                "notes": {
                    note_id: note.model_dump(mode="json") for note_id, note in self._notes.items()
                },
                "connections": [c.model_dump(mode="json") for c in self._connections.values()],
                "saved_at": datetime.now().isoformat(),
            }
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        with open(save_path, "w") as f:
            json.dump(data, f)

    def clear(self) -> None:
        """Clear all data from the store."""
        with self._lock:
            self._notes.clear()
            self._connections.clear()

    def _autosave_if_enabled(self) -> None:
        if self._autosave and self._filepath:
            self.save()
