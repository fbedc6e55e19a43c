"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.

Tuning knobs for the two relationship paths and for semantic search
live here as well, so thresholds and guardrails are set in one place.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Required env vars (no defaults):
        POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB

    Optional env vars:
        POSTGRES_HOST (localhost), POSTGRES_PORT (5432), LOG_LEVEL (INFO),
        OPENAI_API_KEY (unset/"mock" switches embeddings to offline mock mode)
    """

    PROJECT_NAME: str = "Notegraph"

    # Database
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str

    # Logging
    LOG_LEVEL: str = "INFO"
    PAIRWISE_LOG_LEVEL: str = "DEBUG"

    # Embedding provider
    OPENAI_API_KEY: str | None = None
    EMBEDDING_PROVIDER: Literal["openai", "local", "mock"] = "openai"
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSION: int = 1536
    LOCAL_EMBEDDING_MODEL: str = "all-MiniLM-L6-v2"

    # Language model (judge + auto-tagging)
    LLM_BACKEND: Literal["openai", "ollama"] = "openai"
    CHAT_MODEL: str = "gpt-3.5-turbo"
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "mistral"
    LLM_TIMEOUT: float = 30.0

    # Exact (judge-scored) relationship path
    EXACT_MAX_TAGS: int = 50
    EXACT_BATCH_SIZE: int = 5
    EXACT_CALL_DELAY_MS: int = 100
    EXACT_MIN_SIMILARITY: float = 0.1

    # Fast (embedding) relationship path
    FAST_MIN_SIMILARITY: float = 0.3

    # Semantic search
    SEARCH_MAX_RESULTS: int = 10
    SEARCH_MIN_SIMILARITY: float = 0.2

    # Vector index distance normalization
    INDEX_METRIC: Literal["cosine", "l2"] = "cosine"
    MAX_DISTANCE: float = 2.0

    # Read side: edges below this are hidden from listings
    RELATIONSHIPS_MIN_SIMILARITY: float = 0.3

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )

    @property
    def DATABASE_URL(self) -> str:
        """Async PostgreSQL connection string using asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def embeddings_mocked(self) -> bool:
        """True when no usable OpenAI key is configured for embeddings."""
        if self.EMBEDDING_PROVIDER == "mock":
            return True
        if self.EMBEDDING_PROVIDER == "local":
            return False
        key = self.OPENAI_API_KEY
        return not key or key.lower() == "mock"


settings = Settings()  # type: ignore[call-arg]
