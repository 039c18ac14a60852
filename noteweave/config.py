from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Store settings
    local_store_path: str = "data/notes.json"

    # Embedding settings; a provider without an API key means no semantic suggestions
    embedding_provider: Literal["voyage", "openai", "none"] = "voyage"
    voyage_ai_api_key: str | None = None
    openai_api_key: str | None = None
    embedding_model: str | None = None  # provider default when unset
    embedding_timeout_seconds: float = 5.0
    vector_search_timeout_seconds: float = 5.0

    # Suggestion ranking
    suggestion_default_limit: int = 5
    suggestion_min_text_length: int = 20
    suggestion_similarity_threshold: float = 0.5
    suggestion_overfetch_factor: int = 3
    suggestion_recency_days: int = 7

    cors_allow_origins: list[str] = ["*"]
    server_url: str = "http://127.0.0.1:8000"  # where scripts reach a running server

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
