"""Observability module for metrics and monitoring."""

from grounded_rag.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_ask_request,
    track_cache_lookup,
    track_embedding_request,
    track_llm_request,
    track_retrieval_request,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_ask_request",
    "track_cache_lookup",
    "track_embedding_request",
    "track_llm_request",
    "track_retrieval_request",
    "track_vectorstore_operation",
]
