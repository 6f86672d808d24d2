"""Vector store interface and shared scoring helpers."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from grounded_rag.exceptions import VectorStoreUnavailable
from grounded_rag.vectorstore.models import IndexPoint, RetrievedChunk


def normalize_score(raw: float | None) -> float:
    """Map a cosine similarity in ``[-1, 1]`` onto ``[0, 1]``.

    A missing score maps to 0.0; out-of-range input is clamped.
    """
    if raw is None:
        return 0.0
    return min(1.0, max(0.0, (raw + 1.0) / 2.0))


def chunk_from_payload(
    point_id: str,
    payload: Mapping[str, Any] | None,
    score: float,
) -> RetrievedChunk:
    """Build a RetrievedChunk from a stored payload."""
    payload = payload or {}
    text = payload.get("original_text", payload.get("text"))
    if not isinstance(text, str):
        text = ""
    chunk_index = payload.get("chunk_index")
    if isinstance(chunk_index, bool) or not isinstance(chunk_index, int | float):
        chunk_index = None
    source = payload.get("source")
    return RetrievedChunk(
        id=point_id,
        text=text,
        score=score,
        chunk_index=int(chunk_index) if chunk_index is not None else None,
        source=source if isinstance(source, str) else None,
    )


def check_vectors(points: Sequence[IndexPoint]) -> None:
    """Reject points with empty vectors before anything is sent.

    Raises:
        VectorStoreUnavailable: If any point has an empty vector.
    """
    for point in points:
        if not point.vector:
            raise VectorStoreUnavailable(
                "Point has empty vector",
                details={"point_id": point.id},
            )


def batched(points: Sequence[IndexPoint], size: int) -> list[Sequence[IndexPoint]]:
    """Split points into consecutive batches of at most ``size``."""
    return [points[i : i + size] for i in range(0, len(points), size)]


class VectorStore(ABC):
    """Abstract base class for vector stores.

    A store manages one named collection of points. Every failure surfaces
    as VectorStoreUnavailable.
    """

    @abstractmethod
    async def init_collection(self, vector_dim: int) -> None:
        """Create the collection or verify its dimension.

        Idempotent. A dimension mismatch fails unless the store is configured
        to drop and recreate the collection.

        Args:
            vector_dim: Expected vector dimension.

        Raises:
            VectorStoreUnavailable: On mismatch (strict mode) or store failure.
        """
        ...

    @abstractmethod
    async def upsert(self, points: Sequence[IndexPoint]) -> int:
        """Insert or replace points.

        Args:
            points: Points to upsert.

        Returns:
            Number of points upserted.

        Raises:
            VectorStoreUnavailable: On an empty vector or store failure.
        """
        ...

    @abstractmethod
    async def search(self, vector: Sequence[float], top_k: int) -> list[RetrievedChunk]:
        """Search for similar vectors.

        Args:
            vector: Query vector.
            top_k: Maximum results to return.

        Returns:
            Chunks ordered by descending similarity, scores in ``[0, 1]``.
            Empty when the collection is empty.

        Raises:
            VectorStoreUnavailable: If search fails.
        """
        ...

    @abstractmethod
    async def get_by_id(self, point_id: str) -> RetrievedChunk | None:
        """Look up a point by exact id.

        Returns:
            The chunk with score 1.0, or None when not found.

        Raises:
            VectorStoreUnavailable: If the lookup fails.
        """
        ...

    async def close(self) -> None:
        """Release store resources."""
