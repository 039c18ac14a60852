from loguru import logger

from noteweave.config import Settings
from noteweave.embedders import openai_embedder, voyage_embedder
from noteweave.embedders.base import Embedder


def build_embedder(settings: Settings) -> Embedder | None:
    """Create the configured embedder, or None when the provider has no credentials."""
    if settings.embedding_provider == "voyage" and settings.voyage_ai_api_key:
        return voyage_embedder.VoyageEmbedder(
            api_key=settings.voyage_ai_api_key,
            model=settings.embedding_model or voyage_embedder.DEFAULT_MODEL,
            timeout=settings.embedding_timeout_seconds,
        )
    if settings.embedding_provider == "openai" and settings.openai_api_key:
        return openai_embedder.OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.embedding_model or openai_embedder.DEFAULT_MODEL,
            timeout=settings.embedding_timeout_seconds,
        )

    logger.warning(
        f"No credentials for embedding provider '{settings.embedding_provider}', "
        "suggestions will use tag and recency ranking only"
    )
    return None
