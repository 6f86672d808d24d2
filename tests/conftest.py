"""Pytest configuration and shared fixtures."""

import json
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from grounded_rag.api.app import create_app
from grounded_rag.config import (
    EmbeddingSettings,
    LLMSettings,
    QdrantSettings,
    Settings,
    VectorBackend,
)
from grounded_rag.retry import RetryPolicy
from grounded_rag.vectorstore.models import RetrievedChunk

TEST_DIMENSION = 64

KNOWLEDGE = [
    {"id": "doc-1", "text": "Our office is open Monday to Friday, 9am to 5pm."},
    {"id": "doc-2", "text": "Shipping takes 3 business days within the country."},
    {"id": "doc-3", "text": "Support can be reached at support@example.com."},
    {"id": "doc-4", "text": "Refunds are issued within 5–7 business days after review."},
]


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy that never actually sleeps."""
    return RetryPolicy(sleep=AsyncMock())


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an AsyncClient served by a request handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def refund_chunk() -> RetrievedChunk:
    return RetrievedChunk(
        id="doc-4",
        text="Refunds are issued within 5–7 business days after review.",
        score=0.92,
        chunk_index=0,
        source="knowledge.json",
    )


@pytest.fixture
def knowledge_file(tmp_path: Path) -> Path:
    """Knowledge JSON file with a handful of short documents."""
    path = tmp_path / "knowledge.json"
    path.write_text(json.dumps(KNOWLEDGE), encoding="utf-8")
    return path


@pytest.fixture
def settings(knowledge_file: Path) -> Settings:
    """Offline settings: in-memory store, synthetic vectors, extractive answers."""
    return Settings(
        vector_backend=VectorBackend.MEMORY,
        knowledge_path=knowledge_file,
        embedding=EmbeddingSettings(api_key=None, dimension=TEST_DIMENSION),
        llm=LLMSettings(api_key=None),
        qdrant=QdrantSettings(force_recreate=False),
    )


@pytest.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    """Application with its lifespan running."""
    application = create_app(settings)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
