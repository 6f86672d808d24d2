"""Qdrant-backed vector store."""

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar
from uuid import NAMESPACE_URL, UUID, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import (
    Distance,
    Filter,
    HasIdCondition,
    HnswConfigDiff,
    PointStruct,
    VectorParams,
)

from grounded_rag.config import QdrantSettings, get_settings
from grounded_rag.exceptions import VectorStoreUnavailable, truncate
from grounded_rag.logging_config import get_logger
from grounded_rag.observability.metrics import (
    track_retrieval_request,
    track_vectorstore_operation,
)
from grounded_rag.retry import RetryPolicy, is_transient_qdrant_error
from grounded_rag.vectorstore.models import IndexPoint, RetrievedChunk
from grounded_rag.vectorstore.service import (
    VectorStore,
    batched,
    check_vectors,
    chunk_from_payload,
    normalize_score,
)

logger = get_logger(__name__)

T = TypeVar("T")

MAX_POINT_INT = 2**64


def to_point_id(point_id: str) -> int | str:
    """Qdrant only accepts unsigned integers and UUIDs as point ids.

    Only canonical forms map directly (no leading zeros, lowercase hyphenated
    UUIDs) so distinct ids never share a point. Other strings map to a
    deterministic UUIDv5; the original id travels in the payload.
    """
    if point_id.isascii() and point_id.isdigit() and str(int(point_id)) == point_id:
        if int(point_id) < MAX_POINT_INT:
            return int(point_id)
    try:
        canonical = str(UUID(point_id))
    except ValueError:
        canonical = None
    if canonical == point_id:
        return point_id
    return str(uuid5(NAMESPACE_URL, point_id))


def _collection_size(info: Any) -> int | None:
    """Extract the vector size from a collection info response."""
    vectors = info.config.params.vectors
    if isinstance(vectors, dict):
        # Named vectors: the unnamed default or the first one
        vectors = vectors.get("") or next(iter(vectors.values()), None)
    return getattr(vectors, "size", None)


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation using cosine distance."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
            retry_policy: Retry policy; only transient Qdrant errors are retried.
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._retry = (retry_policy or RetryPolicy()).with_predicate(
            is_transient_qdrant_error
        )
        self._init_lock = asyncio.Lock()

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def _call(
        self,
        operation: str,
        fn: Callable[[AsyncQdrantClient], Awaitable[T]],
        **context: Any,
    ) -> T:
        """Run a client call with retries, timing and uniform error mapping."""
        client = await self._get_client()
        start = time.perf_counter()
        try:
            result = await self._retry.call(lambda: fn(client), name=f"qdrant {operation}")
        except Exception as e:
            track_vectorstore_operation(operation, time.perf_counter() - start, False)
            details: dict[str, Any] = {
                "operation": operation,
                "collection": self.collection,
                **context,
            }
            if isinstance(e, UnexpectedResponse):
                details["status"] = e.status_code
                details["body"] = truncate(e.content, 500)
            else:
                details["cause"] = truncate(e, 500)
            logger.error(f"Qdrant {operation} failed", extra=details)
            raise VectorStoreUnavailable(f"Qdrant {operation} failed", details=details) from e

        track_vectorstore_operation(operation, time.perf_counter() - start, True)
        return result

    async def init_collection(self, vector_dim: int) -> None:
        """Create the collection or verify its vector size."""
        async with self._init_lock:
            exists = await self._call(
                "collection_exists",
                lambda c: c.collection_exists(self.collection),
            )
            if not exists:
                await self._create_collection(vector_dim)
                return

            info = await self._call(
                "get_collection",
                lambda c: c.get_collection(self.collection),
            )
            current = _collection_size(info)
            if current is None or current == vector_dim:
                return

            message = (
                f"Qdrant collection vector size mismatch: "
                f"have={current} expected={vector_dim}"
            )
            if not self._settings.force_recreate:
                logger.error(message)
                raise VectorStoreUnavailable(
                    message,
                    details={"expected": vector_dim, "actual": current},
                )

            logger.warning(
                f"{message}; dropping and recreating collection",
                extra={"collection": self.collection},
            )
            await self._call(
                "delete_collection",
                lambda c: c.delete_collection(self.collection),
            )
            await self._create_collection(vector_dim)

    async def _create_collection(self, vector_dim: int) -> None:
        await self._call(
            "create_collection",
            lambda c: c.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(size=vector_dim, distance=Distance.COSINE),
                hnsw_config=HnswConfigDiff(
                    m=self._settings.hnsw_m,
                    ef_construct=self._settings.hnsw_ef_construct,
                ),
            ),
            vector_dim=vector_dim,
        )
        logger.info(
            f"Created collection: {self.collection}",
            extra={"dimensions": vector_dim, "distance": "Cosine"},
        )

    async def upsert(self, points: Sequence[IndexPoint]) -> int:
        """Upsert points in fixed-size batches; a failed batch aborts the rest."""
        if not points:
            return 0
        check_vectors(points)

        for batch in batched(points, self._settings.upsert_batch_size):
            structs = [
                PointStruct(
                    id=to_point_id(point.id),
                    vector=list(point.vector),
                    payload={**point.payload, "id": point.id},
                )
                for point in batch
            ]
            await self._call(
                "upsert",
                lambda c, structs=structs: c.upsert(
                    collection_name=self.collection,
                    points=structs,
                    wait=True,
                ),
                points_count=len(structs),
                first_point_id=batch[0].id,
            )

        logger.debug(
            f"Upserted {len(points)} points",
            extra={"collection": self.collection},
        )
        return len(points)

    async def search(self, vector: Sequence[float], top_k: int) -> list[RetrievedChunk]:
        """Search for similar vectors."""
        response = await self._call(
            "search",
            lambda c: c.query_points(
                collection_name=self.collection,
                query=list(vector),
                limit=top_k,
                with_payload=True,
            ),
            top_k=top_k,
        )

        chunks = [
            chunk_from_payload(
                self._original_id(point.id, point.payload),
                point.payload,
                normalize_score(point.score),
            )
            for point in response.points
        ]
        track_retrieval_request(len(chunks), chunks[0].score if chunks else 0.0)
        return chunks

    async def get_by_id(self, point_id: str) -> RetrievedChunk | None:
        """Look up a point by id through a filtered scroll."""
        records, _next_offset = await self._call(
            "get_by_id",
            lambda c: c.scroll(
                collection_name=self.collection,
                scroll_filter=Filter(must=[HasIdCondition(has_id=[to_point_id(point_id)])]),
                limit=1,
                with_payload=True,
                with_vectors=False,
            ),
            id=point_id,
        )
        if not records:
            return None
        record = records[0]
        return chunk_from_payload(
            self._original_id(record.id, record.payload),
            record.payload,
            1.0,
        )

    @staticmethod
    def _original_id(point_id: Any, payload: dict[str, Any] | None) -> str:
        stored = (payload or {}).get("id")
        return stored if isinstance(stored, str) else str(point_id)
