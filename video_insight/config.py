from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    google_api_key: str = ""  # Gemini video model (visual descriptions, video summary)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    rapid_api_key: str = ""  # Fallback transcript provider

    # Supabase (cache store); in-memory cache when absent
    supabase_url: str = ""
    supabase_key: str = ""
    cache_table: str = "cache_entries"
    cache_ttl_seconds: int = 30 * 24 * 60 * 60

    # Models
    gemini_model: str = "gemini-2.0-flash"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 512
    llm_model: str = "claude-sonnet-4-20250514"

    # Transcript sources
    transcript_language: str = "en"
    rapid_api_host: str = "youtube-transcriptor.p.rapidapi.com"

    # Visual descriptions
    description_interval_seconds: int = 30
    description_chunk_minutes: int = 10

    # Embeddings
    embedding_max_batch_size: int = 100
    embedding_max_concurrency: int = 3
    embedding_max_retries: int = 3
    embedding_retry_delay_seconds: float = 1.0

    # Search
    search_min_similarity: float = 0.3
    search_max_results: int = 10

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
