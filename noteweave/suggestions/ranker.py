"""Hybrid related-note ranking: semantic similarity blended with tags and recency."""

from datetime import datetime
from typing import Callable, List, Sequence

import numpy as np
from loguru import logger

from noteweave.capabilities import EmbeddingCapability, Unavailable, VectorSearchCapability
from noteweave.domain.note import Note, utc_now
from noteweave.domain.suggestions import Suggestion
from noteweave.stores.base import NoteStore

from . import scoring


class SuggestionRanker:
    """Recommends notes related to a subject note.

    Uses semantic similarity when an embedding for the subject is available and
    vector search answers; otherwise ranks by shared tags and recency.
    """

    def __init__(
        self,
        *,
        note_store: NoteStore,
        embeddings: EmbeddingCapability,
        vector_search: VectorSearchCapability,
        min_text_length: int = 20,
        similarity_threshold: float = 0.5,
        overfetch_factor: int = 3,
        recency_days: int = 7,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the ranker.

        Args:
            note_store: Store holding notes, tags and connections
            embeddings: Capability used to embed subject text without a stored embedding
            vector_search: Capability returning notes by embedding similarity
            min_text_length: Subject text shorter than this always uses the fallback ranking
            similarity_threshold: Minimum similarity for semantic candidates
            overfetch_factor: Semantic candidates fetched per requested result, to allow filtering
            recency_days: Notes younger than this get a recency boost
            clock: Returns the current time
        """
        self.note_store = note_store
        self.embeddings = embeddings
        self.vector_search = vector_search
        self.min_text_length = min_text_length
        self.similarity_threshold = similarity_threshold
        self.overfetch_factor = overfetch_factor
        self.recency_days = recency_days
        self.clock = clock

    def suggest(
        self,
        subject_id: str | None,
        subject_text: str,
        subject_tags: Sequence[str] = (),
        limit: int = 5,
        *,
        viewer_id: str | None = None,
    ) -> List[Suggestion]:
        """Get notes related to the subject, best first.

        Never raises and never returns more than `limit` items. The subject and
        every note already connected to it are excluded.

        Args:
            subject_id: ID of the subject note, None for unsaved drafts
            subject_text: Title and body of the subject
            subject_tags: Tag names of the subject
            limit: Maximum number of suggestions
            viewer_id: User the suggestions are for; only notes they can see are returned

        Returns:
            Ranked suggestions
        """
        if limit <= 0:
            return []

        try:
            return self._suggest(subject_id, subject_text, list(subject_tags), limit, viewer_id)[
                :limit
            ]
        except Exception:
            logger.exception(f"[suggestions] Ranking failed for note {subject_id}")
            return []

    def _suggest(
        self,
        subject_id: str | None,
        subject_text: str,
        subject_tags: list[str],
        limit: int,
        viewer_id: str | None,
    ) -> List[Suggestion]:
        excluded = self._excluded_ids(subject_id)
        fallback = self._fallback_suggestions(subject_tags, limit * 2, excluded, viewer_id)

        if len(subject_text.strip()) < self.min_text_length:
            return fallback

        try:
            embedding = self._subject_embedding(subject_id, subject_text)
            if isinstance(embedding, Unavailable):
                logger.debug(f"[suggestions] No embedding ({embedding.reason}), using fallback")
                return fallback

            return self._semantic_suggestions(
                embedding, subject_tags, limit, excluded, viewer_id, fallback
            )
        except Exception as e:
            logger.error(f"[suggestions] Semantic search error: {e}")
            return fallback

    def _excluded_ids(self, subject_id: str | None) -> set[str]:
        if subject_id is None:
            return set()
        try:
            return {subject_id} | self.note_store.get_neighbor_ids(subject_id)
        except Exception as e:
            logger.error(f"[suggestions] Failed to load connections for note {subject_id}: {e}")
            return {subject_id}

    def _subject_embedding(
        self, subject_id: str | None, subject_text: str
    ) -> np.ndarray | Unavailable:
        if subject_id is not None:
            subject = self.note_store.get_note(subject_id)
            if subject is not None and subject.embedding is not None:
                return subject.embedding

        return self.embeddings.embed(subject_text)

    def _semantic_suggestions(
        self,
        embedding: np.ndarray,
        subject_tags: list[str],
        limit: int,
        excluded: set[str],
        viewer_id: str | None,
        fallback: List[Suggestion],
    ) -> List[Suggestion]:
        matches = self.vector_search.match(
            embedding, self.similarity_threshold, limit * self.overfetch_factor
        )
        if isinstance(matches, Unavailable) or not matches:
            logger.warning("[suggestions] Semantic search failed or no results, using fallback")
            return fallback

        now = self.clock()
        notes = self.note_store.get_notes_by_ids(m.note_id for m in matches)
        ranked = []
        for match in matches:
            note = notes.get(match.note_id)
            if note is None or note.id in excluded or not note.is_visible_to(viewer_id):
                continue

            score = scoring.semantic_score(
                match.similarity,
                scoring.count_shared_tags(note.tags, subject_tags),
                scoring.is_recent(note.created_at, now, self.recency_days),
            )
            ranked.append(self._to_suggestion(note, score, similarity=match.similarity))

        return self._sorted(ranked)[:limit]

    def _fallback_suggestions(
        self,
        subject_tags: list[str],
        limit: int,
        excluded: set[str],
        viewer_id: str | None,
    ) -> List[Suggestion]:
        """Rank by tag overlap and recency; the most recent notes when there are no tags."""
        try:
            if not subject_tags:
                recent = self.note_store.list_recent_notes(
                    limit, exclude_ids=excluded, viewer_id=viewer_id
                )
                return [
                    self._to_suggestion(note, scoring.FALLBACK_BASE_SCORE) for note in recent
                ]

            known_tags = [
                tag.name for tag in self.note_store.get_tags(subject_tags) if tag.usage_count
            ]
            if not known_tags:
                return []

            now = self.clock()
            ranked = []
            for note in self.note_store.find_notes_by_tags(known_tags):
                if note.id in excluded or not note.is_visible_to(viewer_id):
                    continue
                score = scoring.fallback_score(
                    scoring.count_shared_tags(note.tags, subject_tags),
                    scoring.is_recent(note.created_at, now, self.recency_days),
                )
                ranked.append(self._to_suggestion(note, score))

            return self._sorted(ranked)[:limit]
        except Exception as e:
            logger.error(f"[suggestions] Fallback search error: {e}")
            return []

    @staticmethod
    def _sorted(suggestions: List[Suggestion]) -> List[Suggestion]:
        """Sort by score, then newest first, then ID."""
        by_id = sorted(suggestions, key=lambda s: s.id)
        return sorted(by_id, key=lambda s: (s.score, s.created_at), reverse=True)

    @staticmethod
    def _to_suggestion(note: Note, score: float, similarity: float | None = None) -> Suggestion:
        return Suggestion(
            id=note.id,
            title=note.title,
            body=note.body,
            created_at=note.created_at,
            score=score,
            similarity=similarity,
            tags=list(note.tags),
        )
