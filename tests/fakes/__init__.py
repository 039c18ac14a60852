from tests.fakes.fake_embedder import FailingEmbedder, FakeEmbedder, SlowEmbedder
from tests.fakes.fake_sink import FailingSink, RecordingSink
from tests.fakes.fake_vector_search import FailingVectorSearch, FakeVectorSearch
from tests.fakes.flaky_note_store import FlakyNoteStore

__all__ = [
    "FailingEmbedder",
    "FailingSink",
    "FailingVectorSearch",
    "FakeEmbedder",
    "FakeVectorSearch",
    "FlakyNoteStore",
    "RecordingSink",
    "SlowEmbedder",
]
