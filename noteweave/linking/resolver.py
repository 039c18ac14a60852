"""Resolution of wikilink titles to notes the acting user may link to."""

import logging

from noteweave.domain.note import Note
from noteweave.stores.base import NoteStore

logger = logging.getLogger(__name__)


class TargetResolver:
    """Resolves a mention's title to a concrete, visibility-eligible note."""

    def __init__(self, note_store: NoteStore):
        """Initialize resolver with the store used for title lookups.

        Args:
            note_store: Store providing exact-title note lookups
        """
        self.note_store = note_store

    def resolve(self, title: str, acting_user_id: str, source_note_id: str) -> Note | None:
        """Resolve a wikilink title to a target note.

        A title that matches nothing, matches only the source note, or matches only
        notes the acting user cannot see all resolve to None; callers cannot tell
        these cases apart.

        When several eligible notes share the title, the acting user's own notes
        win, then the oldest note, then the smallest ID.

        Args:
            title: Title from the wikilink
            acting_user_id: User whose edit triggered the resolution
            source_note_id: Note containing the wikilink

        Returns:
            The resolved target note, or None
        """
        candidates = [
            note
            for note in self.note_store.find_notes_by_title(title)
            if note.id != source_note_id and note.is_visible_to(acting_user_id)
        ]
        if not candidates:
            logger.debug(f"No eligible target for wikilink: {title}")
            return None

        return min(
            candidates,
            key=lambda note: (note.owner_id != acting_user_id, note.created_at, note.id),
        )
