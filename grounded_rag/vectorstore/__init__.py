"""Vector store module."""

from grounded_rag.config import Settings, VectorBackend
from grounded_rag.retry import RetryPolicy
from grounded_rag.vectorstore.memory import InMemoryVectorStore
from grounded_rag.vectorstore.models import IndexPoint, PayloadValue, RetrievedChunk
from grounded_rag.vectorstore.qdrant import QdrantVectorStore
from grounded_rag.vectorstore.service import VectorStore, normalize_score


def create_vector_store(
    settings: Settings,
    retry_policy: RetryPolicy | None = None,
) -> VectorStore:
    """Build the vector store selected by ``settings.vector_backend``."""
    if settings.vector_backend == VectorBackend.MEMORY:
        return InMemoryVectorStore(force_recreate=settings.qdrant.force_recreate)
    return QdrantVectorStore(settings=settings.qdrant, retry_policy=retry_policy)


__all__ = [
    "InMemoryVectorStore",
    "IndexPoint",
    "PayloadValue",
    "QdrantVectorStore",
    "RetrievedChunk",
    "VectorStore",
    "create_vector_store",
    "normalize_score",
]
