"""Connection (edge) domain models."""

from pydantic import BaseModel, Field, model_validator

from noteweave.domain.note import UtcDatetime, utc_now


class Connection(BaseModel):
    """A directed link between two notes, derived from a wikilink in the source note.

    Connections are a projection of note text: they are created, updated and
    deleted only by the graph synchronizer.
    """

    source_note_id: str
    target_note_id: str
    context: str = ""  # sentence surrounding the wikilink
    created_by: str
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _reject_self_link(self) -> "Connection":
        if self.source_note_id == self.target_note_id:
            raise ValueError(f"Note {self.source_note_id} cannot link to itself")
        return self

    @property
    def key(self) -> tuple[str, str]:
        return self.source_note_id, self.target_note_id


class ConnectionCreated(BaseModel):
    """Event emitted when the synchronizer creates a connection to someone else's note."""

    recipient_owner_id: str
    source_note_id: str
    target_note_id: str
    actor_id: str
    created_at: UtcDatetime = Field(default_factory=utc_now)
