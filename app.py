import logging
import sys

import uvicorn
from loguru import logger

from noteweave.api import create_app
from noteweave.capabilities import EmbeddingCapability, VectorSearchCapability
from noteweave.config import settings
from noteweave.embedders.backfill import EmbeddingBackfill
from noteweave.embedders.factory import build_embedder
from noteweave.linking import GraphSynchronizer
from noteweave.notifications.outbox import LoggingNotificationSink, NotificationOutbox
from noteweave.stores.local_store import LocalNoteStore
from noteweave.suggestions.ranker import SuggestionRanker

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])
logging.basicConfig(stream=sys.stderr, level=settings.log_level)

logger.info(f"Loading notes from {settings.local_store_path}")
note_store = LocalNoteStore(filepath=settings.local_store_path, autosave=True)
outbox = NotificationOutbox()

embedder = build_embedder(settings)
embeddings = EmbeddingCapability(embedder, timeout=settings.embedding_timeout_seconds)
vector_search = VectorSearchCapability(
    note_store, timeout=settings.vector_search_timeout_seconds
)

synchronizer = GraphSynchronizer(note_store=note_store, outbox=outbox)
ranker = SuggestionRanker(
    note_store=note_store,
    embeddings=embeddings,
    vector_search=vector_search,
    min_text_length=settings.suggestion_min_text_length,
    similarity_threshold=settings.suggestion_similarity_threshold,
    overfetch_factor=settings.suggestion_overfetch_factor,
    recency_days=settings.suggestion_recency_days,
)
app = create_app(
    note_store=note_store,
    synchronizer=synchronizer,
    ranker=ranker,
    outbox=outbox,
    sink=LoggingNotificationSink(),
    backfill=EmbeddingBackfill(
        note_store=note_store,
        embeddings=EmbeddingCapability(
            embedder, timeout=settings.embedding_timeout_seconds, max_workers=1
        ),
    ),
)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
