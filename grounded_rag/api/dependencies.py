"""Service wiring for the API layer."""

from dataclasses import dataclass

import httpx
from fastapi import Request

from grounded_rag.config import Settings
from grounded_rag.embeddings.cache import EmbeddingCache
from grounded_rag.embeddings.service import OpenAIEmbeddingClient
from grounded_rag.exceptions import RAGServiceError
from grounded_rag.http_client import create_http_client
from grounded_rag.llm.client import OpenAICompatibleClient
from grounded_rag.logging_config import get_logger
from grounded_rag.rag.pipeline import AskPipeline
from grounded_rag.rag.synthesizer import AnswerSynthesizer
from grounded_rag.retry import RetryPolicy
from grounded_rag.vectorstore import create_vector_store
from grounded_rag.vectorstore.service import VectorStore

logger = get_logger(__name__)


@dataclass
class Services:
    """Long-lived collaborators shared by all requests."""

    settings: Settings
    http_client: httpx.AsyncClient
    embedding_client: OpenAIEmbeddingClient
    cache: EmbeddingCache
    vector_store: VectorStore
    llm_client: OpenAICompatibleClient
    pipeline: AskPipeline

    async def close(self) -> None:
        """Release network resources."""
        await self.vector_store.close()
        await self.llm_client.close()
        await self.embedding_client.close()
        await self.http_client.aclose()


def build_services(settings: Settings) -> Services:
    """Construct the service graph from settings.

    The HTTP client is shared by the embedding and chat providers and is
    owned by the returned container.
    """
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
    vector_store = create_vector_store(settings, retry_policy)
    llm_client = OpenAICompatibleClient(
        settings=settings.llm,
        client=http_client,
        retry_policy=retry_policy,
    )
    pipeline = AskPipeline(
        cache=cache,
        vector_store=vector_store,
        synthesizer=AnswerSynthesizer(llm_client),
    )

    logger.info(
        "Services configured",
        extra={
            "vector_backend": settings.vector_backend.value,
            "embedding_provider": embedding_client.provider_configured,
            "llm_provider": llm_client.configured,
        },
    )

    return Services(
        settings=settings,
        http_client=http_client,
        embedding_client=embedding_client,
        cache=cache,
        vector_store=vector_store,
        llm_client=llm_client,
        pipeline=pipeline,
    )


def get_services(request: Request) -> Services:
    """Services attached to the application at startup."""
    services: Services | None = getattr(request.app.state, "services", None)
    if services is None:
        raise RAGServiceError("Service not initialized")
    return services


def get_pipeline(request: Request) -> AskPipeline:
    return get_services(request).pipeline
