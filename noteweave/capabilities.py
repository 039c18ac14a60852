"""Optional external capabilities: text embedding and vector search.

Both are network-bound and may be missing, fail or hang. The wrappers here turn
every one of those outcomes into an `Unavailable` value so callers can branch on
the result instead of handling exceptions.
"""

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, List, TypeVar, Union

import numpy as np
from loguru import logger
from pydantic import BaseModel

from noteweave.domain.note import NoteMatch
from noteweave.embedders.base import Embedder
from noteweave.stores.base import VectorSearch

T = TypeVar("T")


class Unavailable(BaseModel):
    """A capability could not produce a result."""

    reason: str


EmbeddingResult = Union[np.ndarray, Unavailable]
MatchResult = Union[List[NoteMatch], Unavailable]


class _TimeboxedCapability:
    def __init__(self, name: str, timeout: float, max_workers: int):
        self._name = name
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._closed = False

    def _call(self, func: Callable[[], T]) -> T | Unavailable:
        if self._closed:
            return Unavailable(reason="closed")
        try:
            future = self._executor.submit(func)
            return future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"[{self._name}] Timed out after {self._timeout}s")
            return Unavailable(reason="timeout")
        except Exception as e:
            logger.error(f"[{self._name}] Call failed: {e}")
            return Unavailable(reason=f"error: {e}")

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)


class EmbeddingCapability(_TimeboxedCapability):
    """Embeds text with an optional embedder, bounded by a timeout."""

    def __init__(self, embedder: Embedder | None, timeout: float = 5.0, max_workers: int = 4):
        super().__init__("embeddings", timeout, max_workers)
        self.embedder = embedder

    @property
    def available(self) -> bool:
        return self.embedder is not None

    def embed(self, text: str) -> EmbeddingResult:
        if self.embedder is None:
            logger.debug("[embeddings] No embedder configured, skipping")
            return Unavailable(reason="not configured")
        if not text or not text.strip():
            logger.warning("[embeddings] Empty text provided, skipping")
            return Unavailable(reason="empty text")

        embedder = self.embedder
        result = self._call(lambda: embedder.embed(text))
        if isinstance(result, Unavailable):
            return result

        vector = np.asarray(result, dtype=np.float32)
        if vector.size == 0:
            logger.error("[embeddings] Model returned empty embedding")
            return Unavailable(reason="empty embedding")
        logger.debug(f"[embeddings] Generated embedding ({vector.size} dimensions)")
        return vector


class VectorSearchCapability(_TimeboxedCapability):
    """Runs nearest-neighbour note search with an optional backend, bounded by a timeout."""

    def __init__(
        self, search: VectorSearch | None, timeout: float = 5.0, max_workers: int = 4
    ):
        super().__init__("vector-search", timeout, max_workers)
        self.search = search

    def match(self, vector: np.ndarray, threshold: float, count: int) -> MatchResult:
        if self.search is None:
            return Unavailable(reason="not configured")

        search = self.search
        return self._call(lambda: list(search.match_notes(vector, threshold, count)))
