"""In-memory vector store with brute-force cosine search.

Used for tests and offline demos; holds one collection in process memory.
"""

import asyncio
import math
from collections.abc import Sequence

from grounded_rag.exceptions import VectorStoreUnavailable
from grounded_rag.logging_config import get_logger
from grounded_rag.observability.metrics import track_retrieval_request
from grounded_rag.vectorstore.models import IndexPoint, RetrievedChunk
from grounded_rag.vectorstore.service import (
    VectorStore,
    check_vectors,
    chunk_from_payload,
    normalize_score,
)

logger = get_logger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors (norm floor 1e-6)."""
    dot = sum(x * y for x, y in zip(a, b, strict=False))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    return dot / max(norm_a * norm_b, 1e-6)


class InMemoryVectorStore(VectorStore):
    """Vector store keeping points in a dict keyed by id."""

    def __init__(self, force_recreate: bool = False) -> None:
        """Initialize the store.

        Args:
            force_recreate: Drop all points on a dimension mismatch instead
                of failing.
        """
        self._force_recreate = force_recreate
        self._points: dict[str, IndexPoint] = {}
        self._dimension: int | None = None
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._points)

    @property
    def dimension(self) -> int | None:
        return self._dimension

    async def init_collection(self, vector_dim: int) -> None:
        async with self._lock:
            if self._dimension is None or self._dimension == vector_dim:
                self._dimension = vector_dim
                return

            message = (
                f"In-memory collection vector size mismatch: "
                f"have={self._dimension} expected={vector_dim}"
            )
            if not self._force_recreate:
                raise VectorStoreUnavailable(
                    message,
                    details={"expected": vector_dim, "actual": self._dimension},
                )
            logger.warning(f"{message}; dropping {len(self._points)} points")
            self._points.clear()
            self._dimension = vector_dim

    async def upsert(self, points: Sequence[IndexPoint]) -> int:
        if not points:
            return 0
        check_vectors(points)
        if self._dimension is not None:
            for point in points:
                if len(point.vector) != self._dimension:
                    raise VectorStoreUnavailable(
                        "Point vector size does not match collection",
                        details={
                            "point_id": point.id,
                            "expected": self._dimension,
                            "actual": len(point.vector),
                        },
                    )

        async with self._lock:
            for point in points:
                self._points[point.id] = point
        return len(points)

    async def search(self, vector: Sequence[float], top_k: int) -> list[RetrievedChunk]:
        if not self._points or top_k < 1:
            return []

        scored = [
            (cosine_similarity(vector, point.vector), point)
            for point in list(self._points.values())
        ]
        scored.sort(key=lambda item: item[0], reverse=True)

        chunks = [
            chunk_from_payload(point.id, point.payload, normalize_score(similarity))
            for similarity, point in scored[:top_k]
        ]
        track_retrieval_request(len(chunks), chunks[0].score if chunks else 0.0)
        return chunks

    async def get_by_id(self, point_id: str) -> RetrievedChunk | None:
        point = self._points.get(point_id)
        if point is None:
            return None
        return chunk_from_payload(point.id, point.payload, 1.0)
