#!/usr/bin/env python
"""Index a knowledge file into the configured vector store.

Usage:
    python -m scripts.ingest --knowledge data/knowledge.json

Embeds every chunk with the configured embedding provider (or the synthetic
fallback) and upserts the points. Exits non-zero if ingestion fails.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from grounded_rag.config import VectorBackend, get_settings
from grounded_rag.embeddings.cache import EmbeddingCache
from grounded_rag.embeddings.service import OpenAIEmbeddingClient
from grounded_rag.exceptions import RAGServiceError
from grounded_rag.http_client import create_http_client
from grounded_rag.ingestion.service import ingest_file
from grounded_rag.logging_config import get_logger, setup_logging
from grounded_rag.retry import RetryPolicy
from grounded_rag.vectorstore import create_vector_store

logger = get_logger(__name__)


async def run_ingestion(
    knowledge_path: Path,
    backend: VectorBackend | None = None,
    force_recreate: bool = False,
) -> bool:
    """Run one ingestion and return whether it succeeded.

    Args:
        knowledge_path: Path to the knowledge JSON file.
        backend: Vector store override.
        force_recreate: Recreate the collection on dimension mismatch.

    Returns:
        True if every item was indexed, False otherwise.
    """
    setup_logging(level="INFO")

    settings = get_settings()
    updates = {}
    if backend is not None:
        updates["vector_backend"] = backend
    if force_recreate:
        updates["qdrant"] = settings.qdrant.model_copy(update={"force_recreate": True})
    if updates:
        settings = settings.model_copy(update=updates)

    http_client = create_http_client(settings.http)
    retry_policy = RetryPolicy.from_settings(settings.retry)
    embedding_client = OpenAIEmbeddingClient(
        settings=settings.embedding,
        client=http_client,
        retry_policy=retry_policy,
    )
    cache = EmbeddingCache(
        embedding_client,
        capacity=settings.cache.capacity,
        ttl_seconds=settings.cache.ttl_seconds,
    )
    store = create_vector_store(settings, retry_policy)

    logger.info(
        f"Ingesting {knowledge_path}",
        extra={"backend": settings.vector_backend.value},
    )
    if settings.vector_backend is VectorBackend.MEMORY:
        logger.warning("In-memory backend selected: dry run, nothing is persisted")
    try:
        report = await ingest_file(
            knowledge_path,
            cache,
            store,
            settings.embedding.dimension,
        )
    except RAGServiceError as e:
        logger.error(
            f"Ingestion failed: {e.message}",
            extra={"error_code": e.code.value, "details": e.details},
        )
        return False
    finally:
        await store.close()
        await http_client.aclose()

    print(f"Ingested {report.documents} documents -> {report.chunks} chunks")
    return True


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Index a knowledge file into the vector store",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--knowledge",
        type=Path,
        required=True,
        help="Path to knowledge JSON file",
    )
    parser.add_argument(
        "--backend",
        type=VectorBackend,
        choices=list(VectorBackend),
        default=None,
        help=(
            "Vector store backend (default from settings); "
            "memory is a dry run whose index is discarded on exit"
        ),
    )
    parser.add_argument(
        "--force-recreate",
        action="store_true",
        help="Drop and recreate the collection on dimension mismatch",
    )

    args = parser.parse_args()

    succeeded = asyncio.run(
        run_ingestion(
            knowledge_path=args.knowledge,
            backend=args.backend,
            force_recreate=args.force_recreate,
        )
    )

    sys.exit(0 if succeeded else 1)


if __name__ == "__main__":
    main()
