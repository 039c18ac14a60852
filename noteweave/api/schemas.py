from typing import List, Optional

from pydantic import BaseModel, Field

from noteweave.domain.connections import Connection
from noteweave.domain.note import Visibility


class SaveNoteRequest(BaseModel):
    """Fields of a note the author may change when saving."""

    title: Optional[str] = None
    body: str
    tags: Optional[List[str]] = None
    visibility: Optional[Visibility] = None


class SyncResponse(BaseModel):
    note_id: str
    valid_link_count: int = Field(..., description="Distinct notes linked from the note's text")


class ConnectionsResponse(BaseModel):
    outgoing: List[Connection]
    incoming: List[Connection]


class SuggestionRequest(BaseModel):
    note_id: Optional[str] = Field(None, description="Subject note, omitted for unsaved drafts")
    text: str = Field("", description="Title and body of the subject")
    tags: List[str] = []
    limit: Optional[int] = Field(None, ge=0, le=50)


class BackfillRequest(BaseModel):
    note_ids: Optional[List[str]] = Field(None, description="Notes to embed, all when omitted")
