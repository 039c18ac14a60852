"""Note domain models."""

from datetime import datetime, timezone
from typing import Annotated, Literal

import numpy as np
from numpy.typing import NDArray
from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, PlainSerializer

Visibility = Literal["private", "public"]


def nd_array_before_validator(x: list[float] | None) -> NDArray[np.float32] | None:
    if x is None:
        return None
    return np.array(x, dtype=np.float32)


def nd_array_serializer(x: NDArray[np.float32]) -> list[float]:
    return x.tolist()  # type: ignore


NumPyArray = Annotated[
    np.ndarray,
    BeforeValidator(nd_array_before_validator),
    PlainSerializer(nd_array_serializer, return_type=list),
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (hand-edited or seeded stores) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class Note(BaseModel):
    """Represents a note authored by a single user.

    Attributes:
        id: Unique identifier of the note
        owner_id: ID of the user who owns and edits the note
        visibility: "private" notes are only visible to their owner, "public" to everyone
        title: Title used to resolve wikilinks; not guaranteed to be unique
        body: Free-text content, may contain [[wikilinks]]
        tags: Tag names attached to the note
        embedding: Optional embedding vector, filled in lazily by the backfill
        created_at: Creation timestamp; naive values are read as UTC
    """

    id: str
    owner_id: str
    visibility: Visibility = "private"
    title: str
    body: str = ""
    tags: list[str] = []
    embedding: NumPyArray | None = None
    created_at: UtcDatetime = Field(default_factory=utc_now)

    model_config = {"arbitrary_types_allowed": True}

    def is_visible_to(self, user_id: str | None) -> bool:
        """Whether the given user may see (and link to) this note."""
        return self.visibility == "public" or (user_id is not None and self.owner_id == user_id)

    @property
    def embedding_text(self) -> str:
        return f"{self.title}\n{self.body}".strip()


class NoteMatch(BaseModel):
    """A single hit returned by vector search."""

    note_id: str
    similarity: float
