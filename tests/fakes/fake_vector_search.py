from typing import List

import numpy as np

from noteweave.domain.note import NoteMatch
from noteweave.stores.base import VectorSearch


class FakeVectorSearch(VectorSearch):
    """Fake vector search returning predefined matches, ignoring the query."""

    def __init__(self, matches: List[NoteMatch] | None = None) -> None:
        self.matches = matches or []
        self.calls: list[tuple[float, int]] = []

    def match_notes(self, vector: np.ndarray, threshold: float, count: int) -> List[NoteMatch]:
        self.calls.append((threshold, count))
        return [m for m in self.matches if m.similarity >= threshold][:count]


class FailingVectorSearch(VectorSearch):
    """Fake vector search that always raises."""

    def match_notes(self, vector: np.ndarray, threshold: float, count: int) -> List[NoteMatch]:
        raise ConnectionError("vector search backend unreachable")
