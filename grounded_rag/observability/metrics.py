"""Prometheus metrics for the question-answering service.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Ask pipeline latency and outcome
- Embedding provider outcomes and cache lookups
- LLM token usage and latency
- Vector store operations and retrieval quality
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Ask Pipeline Metrics
ASK_DURATION = Histogram(
    "rag_ask_duration_seconds",
    "Ask pipeline duration in seconds",
    ["status"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

ASK_TOTAL = Counter(
    "rag_asks_total",
    "Total ask requests",
    ["status"],  # success, fallback, error
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding provider call duration in seconds",
    ["model", "outcome"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding provider calls",
    ["model", "outcome"],  # success, fallback, error
)

EMBEDDING_CACHE_LOOKUPS = Counter(
    "embedding_cache_lookups_total",
    "Embedding cache lookups",
    ["result"],  # hit, miss, expired
)

# LLM Metrics
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"],  # prompt, completion
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total LLM requests",
    ["model", "status"],
)

# Retrieval Metrics
RETRIEVAL_CHUNKS_RETURNED = Histogram(
    "retrieval_chunks_returned",
    "Number of chunks returned per search",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

RETRIEVAL_TOP_SCORE = Histogram(
    "retrieval_top_score",
    "Top normalized similarity score per search",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

# Vector Store Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        if path.startswith("/health"):
            return "/health"
        if path in ("/api/embed", "/api/search", "/api/ask"):
            return path
        return "other"


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_ask_request(duration: float, status: str) -> None:
    """Track one ask pipeline run.

    Args:
        duration: Pipeline duration in seconds.
        status: ``success``, ``fallback`` or ``error``.
    """
    ASK_DURATION.labels(status=status).observe(duration)
    ASK_TOTAL.labels(status=status).inc()


def track_embedding_request(model: str, duration: float, outcome: str) -> None:
    """Track one embedding provider call.

    Args:
        model: Embedding model name.
        duration: Call duration in seconds, retries included.
        outcome: ``success``, ``fallback`` or ``error``.
    """
    EMBEDDING_REQUEST_DURATION.labels(model=model, outcome=outcome).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, outcome=outcome).inc()


def track_cache_lookup(result: str) -> None:
    """Track one embedding cache lookup (``hit``, ``miss`` or ``expired``)."""
    EMBEDDING_CACHE_LOOKUPS.labels(result=result).inc()


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool = True,
) -> None:
    """Track LLM request metrics.

    Args:
        model: LLM model name.
        duration: Request duration in seconds.
        prompt_tokens: Number of prompt tokens.
        completion_tokens: Number of completion tokens.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()

    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)


def track_retrieval_request(chunks_returned: int, top_score: float) -> None:
    """Track retrieval request metrics.

    Args:
        chunks_returned: Number of chunks returned.
        top_score: Highest normalized score.
    """
    RETRIEVAL_CHUNKS_RETURNED.observe(chunks_returned)
    if chunks_returned:
        RETRIEVAL_TOP_SCORE.observe(top_score)


def track_vectorstore_operation(operation: str, duration: float, success: bool) -> None:
    """Track one vector store operation.

    Args:
        operation: Operation name (``search``, ``upsert`` ...).
        duration: Duration in seconds.
        success: Whether the operation succeeded.
    """
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )
