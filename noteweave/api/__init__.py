from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from noteweave.api.endpoints import get_endpoints_router
from noteweave.config import settings
from noteweave.embedders.backfill import EmbeddingBackfill
from noteweave.linking import GraphSynchronizer
from noteweave.notifications.base import NotificationSink
from noteweave.notifications.outbox import NotificationOutbox
from noteweave.stores.base import NoteStore
from noteweave.suggestions.ranker import SuggestionRanker


def create_app(
    *,
    note_store: NoteStore,
    synchronizer: GraphSynchronizer,
    ranker: SuggestionRanker,
    outbox: NotificationOutbox,
    sink: NotificationSink,
    backfill: EmbeddingBackfill | None = None,
) -> FastAPI:
    """Create FastAPI app.

    Events still pending at shutdown (deliveries that failed during a request)
    get one last dispatch attempt, then the capability worker pools are closed.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if outbox.pending():
            delivered = outbox.dispatch(sink)
            logger.info(f"Delivered {delivered} pending notifications on shutdown")
        ranker.embeddings.close()
        ranker.vector_search.close()
        if backfill is not None:
            backfill.embeddings.close()

    app = FastAPI(title="noteweave", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

    app.include_router(
        router=get_endpoints_router(
            note_store=note_store,
            synchronizer=synchronizer,
            ranker=ranker,
            outbox=outbox,
            sink=sink,
            backfill=backfill,
        )
    )

    return app
