"""Scoring functions for related-note suggestions."""

from datetime import datetime, timedelta
from typing import Iterable

FALLBACK_BASE_SCORE = 0.5
FALLBACK_TAG_WEIGHT = 0.2
FALLBACK_RECENCY_BOOST = 0.1
SEMANTIC_TAG_WEIGHT = 0.1
SEMANTIC_TAG_BOOST_CAP = 0.3
SEMANTIC_RECENCY_BOOST = 0.05


def count_shared_tags(note_tags: Iterable[str], subject_tags: Iterable[str]) -> int:
    return len(set(note_tags) & set(subject_tags))


def is_recent(created_at: datetime, now: datetime, recency_days: int) -> bool:
    """Whether a note was created less than `recency_days` before `now`."""
    return now - created_at < timedelta(days=recency_days)


def fallback_score(shared_tags: int, recent: bool) -> float:
    """Score from tag overlap and recency only: 0.2 per shared tag, +0.1 when recent."""
    return shared_tags * FALLBACK_TAG_WEIGHT + (FALLBACK_RECENCY_BOOST if recent else 0.0)


def semantic_score(similarity: float, shared_tags: int, recent: bool) -> float:
    """Blend similarity with a capped tag boost (+0.1 per tag, max +0.3) and +0.05 when recent."""
    tag_boost = min(shared_tags * SEMANTIC_TAG_WEIGHT, SEMANTIC_TAG_BOOST_CAP)
    return similarity + tag_boost + (SEMANTIC_RECENCY_BOOST if recent else 0.0)
