"""Suggestion and tag domain models."""

from datetime import datetime

from pydantic import BaseModel


class Tag(BaseModel):
    """A tag name and how many notes currently carry it."""

    name: str
    usage_count: int = 0


class Suggestion(BaseModel):
    """A related note recommended for a subject note. Computed per request, never stored."""

    id: str
    title: str
    body: str
    created_at: datetime
    score: float
    similarity: float | None = None  # only set on the semantic path
    tags: list[str] = []
