"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables (and an optional
``.env`` file). No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class VectorBackend(str, Enum):
    """Vector store implementation to use."""

    QDRANT = "qdrant"
    MEMORY = "memory"


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration.

    Without an API key the service runs on deterministic synthetic vectors.
    """

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible embeddings API base URL",
    )
    model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Provider API key (synthetic vectors when unset)",
    )
    dimension: int = Field(
        default=1536,
        ge=1,
        description="Vector dimension, must match the collection",
    )


class LLMSettings(BaseSettings):
    """Chat-completion provider configuration."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible chat API base URL",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model name to use for generation",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Provider API key (extractive answers when unset)",
    )
    max_tokens: int = Field(
        default=1024,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.0,
        description="Default sampling temperature",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="rag_demo",
        description="Collection holding the indexed chunks",
    )
    force_recreate: bool = Field(
        default=False,
        description="Drop and recreate the collection on dimension mismatch",
    )
    hnsw_m: int = Field(default=16, description="HNSW graph degree")
    hnsw_ef_construct: int = Field(default=128, description="HNSW build beam width")
    upsert_batch_size: int = Field(
        default=64,
        ge=1,
        description="Points per upsert request",
    )
    timeout: int = Field(
        default=10,
        description="Request timeout in seconds",
    )


class CacheSettings(BaseSettings):
    """Embedding cache configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_CACHE_")

    capacity: int = Field(default=1000, ge=1, description="Maximum cached entries")
    ttl_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Absolute time-to-live per entry",
    )


class RetrySettings(BaseSettings):
    """Retry policy for outbound provider calls."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(default=3, ge=1, description="Total attempts")
    base_delay: float = Field(default=0.5, ge=0, description="First backoff in seconds")
    max_delay: float = Field(default=5.0, ge=0, description="Backoff cap in seconds")
    jitter: float = Field(default=0.5, ge=0, le=1, description="Jitter factor")


class HTTPSettings(BaseSettings):
    """Outbound HTTP client configuration."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    connect_timeout: float = Field(default=3.0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=10.0, description="Response timeout in seconds")
    max_connections: int = Field(default=100, description="Connection pool size")


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    vector_backend: VectorBackend = Field(
        default=VectorBackend.QDRANT,
        description="Vector store backend",
    )
    knowledge_path: Path | None = Field(
        default=None,
        description="JSON knowledge file ingested at startup",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
