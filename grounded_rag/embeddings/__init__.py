"""Embedding client and cache module."""

from grounded_rag.embeddings.cache import CacheStats, EmbeddingCache
from grounded_rag.embeddings.models import EmbeddingResult
from grounded_rag.embeddings.service import (
    EmbeddingClient,
    OpenAIEmbeddingClient,
    fingerprint,
    synthetic_embedding,
)

__all__ = [
    "CacheStats",
    "EmbeddingCache",
    "EmbeddingClient",
    "EmbeddingResult",
    "OpenAIEmbeddingClient",
    "fingerprint",
    "synthetic_embedding",
]
