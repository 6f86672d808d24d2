"""Batch ingestion of knowledge items into the vector store."""

from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from grounded_rag.embeddings.cache import EmbeddingCache
from grounded_rag.ingestion.chunker import chunk_text
from grounded_rag.ingestion.loader import load_knowledge
from grounded_rag.ingestion.models import IngestionReport, KnowledgeItem
from grounded_rag.logging_config import get_logger
from grounded_rag.vectorstore.models import IndexPoint
from grounded_rag.vectorstore.service import VectorStore

logger = get_logger(__name__)

DEFAULT_SOURCE = "knowledge.json"


def chunk_point_id(item_id: str, index: int, total: int) -> str:
    """Point id of a chunk: the item id itself when the item is not split."""
    return item_id if total == 1 else f"{item_id}-{index}"


async def build_points(
    item: KnowledgeItem,
    cache: EmbeddingCache,
    source: str = DEFAULT_SOURCE,
) -> list[IndexPoint]:
    """Chunk and embed one knowledge item."""
    chunks = chunk_text(item.text)
    points: list[IndexPoint] = []

    for index, chunk in enumerate(chunks):
        embedding = await cache.get_or_compute(chunk)
        point_id = chunk_point_id(item.id, index, len(chunks))
        points.append(
            IndexPoint(
                id=point_id,
                vector=embedding.vector,
                payload={
                    "id": point_id,
                    "original_text": chunk,
                    "source": source,
                    "chunk_index": index,
                    "created_at": datetime.now(UTC).isoformat(),
                    "model": embedding.model,
                },
            )
        )

    return points


async def ingest_knowledge(
    items: Sequence[KnowledgeItem],
    cache: EmbeddingCache,
    store: VectorStore,
    dimension: int,
    source: str = DEFAULT_SOURCE,
) -> IngestionReport:
    """Index knowledge items.

    Initializes the collection, embeds every chunk through the cache and
    upserts the resulting points. Re-ingesting an item replaces its points.

    Args:
        items: Knowledge items to index.
        cache: Embedding cache.
        store: Target vector store.
        dimension: Collection vector dimension.
        source: Value recorded in each point's ``source`` payload.

    Returns:
        IngestionReport with document and chunk counts.

    Raises:
        VectorStoreUnavailable: If the store rejects the collection or points.
        EmbeddingProviderUnavailable: If no usable vector can be produced.
    """
    await store.init_collection(dimension)

    points: list[IndexPoint] = []
    for item in items:
        points.extend(await build_points(item, cache, source))

    if points:
        await store.upsert(points)

    report = IngestionReport(documents=len(items), chunks=len(points))
    logger.info(
        f"Ingestion completed: {report.documents} documents -> {report.chunks} chunks",
        extra={"documents": report.documents, "chunks": report.chunks},
    )
    return report


async def ingest_file(
    path: str | Path,
    cache: EmbeddingCache,
    store: VectorStore,
    dimension: int,
) -> IngestionReport:
    """Load a knowledge file and index its items."""
    path = Path(path)
    items = load_knowledge(path)
    return await ingest_knowledge(items, cache, store, dimension, source=path.name)
