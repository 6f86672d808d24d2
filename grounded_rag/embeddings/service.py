"""Embedding client interface and the OpenAI-compatible implementation.

The HTTP client never fails a request because the provider is unreachable:
when the provider cannot be used, a deterministic synthetic vector derived
from the text is returned instead and the degradation is logged.
"""

import hashlib
import math
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import httpx

from grounded_rag.config import EmbeddingSettings, get_settings
from grounded_rag.embeddings.models import EmbeddingResult
from grounded_rag.exceptions import EmbeddingProviderUnavailable, truncate
from grounded_rag.http_client import response_deadline
from grounded_rag.logging_config import get_logger
from grounded_rag.observability.metrics import track_embedding_request
from grounded_rag.retry import RetryPolicy

logger = get_logger(__name__)


def fingerprint(text: str) -> str:
    """Short stable identifier for a piece of text (first 6 SHA-256 bytes)."""
    return hashlib.sha256(text.encode("utf-8")).digest()[:6].hex()


def synthetic_embedding(text: str, dimension: int) -> list[float]:
    """Deterministic unit-length vector derived from the text.

    SHA-256 digest bytes are repeated cyclically to fill ``dimension``, each
    byte is mapped to ``[-1, 1)`` and the result is L2-normalised.
    """
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    values = [(digest[i % len(digest)] - 128) / 128.0 for i in range(dimension)]
    norm = max(math.sqrt(sum(v * v for v in values)), 1e-6)
    return [v / norm for v in values]


class EmbeddingClient(ABC):
    """Abstract base class for embedding clients.

    Defines the interface for turning text into a fixed-dimension vector.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate an embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingProviderUnavailable: If no usable vector can be produced.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...

    async def close(self) -> None:
        """Release client resources."""


class OpenAIEmbeddingClient(EmbeddingClient):
    """Embedding client for OpenAI-compatible ``/embeddings`` APIs.

    Falls back to :func:`synthetic_embedding` when no API key is configured,
    when retries are exhausted, or when the provider rejects the request.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the embedding client.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
            retry_policy: Retry policy for provider calls.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._retry = retry_policy or RetryPolicy()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(10.0, connect=3.0),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def dimensions(self) -> int:
        return self._settings.dimension

    @property
    def provider_configured(self) -> bool:
        """Whether a provider API key is available."""
        api_key = self._settings.api_key
        return api_key is not None and bool(api_key.get_secret_value().strip())

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed text via the provider, degrading to a synthetic vector.

        Raises:
            EmbeddingProviderUnavailable: If the provider returns a vector
                whose length differs from the configured dimension.
        """
        if not self.provider_configured:
            logger.debug("Embedding provider not configured, using synthetic vector")
            return self._synthetic(text)

        start = time.perf_counter()
        try:
            data = await self._retry.call(
                lambda: self._request(text),
                name="embedding request",
            )
            result = self._parse(text, data)
        except EmbeddingProviderUnavailable:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, outcome="error"
            )
            raise
        except (httpx.HTTPError, ValueError) as e:
            details = self._failure_details(e)
            logger.warning(
                "Embedding provider unavailable, using synthetic vector",
                extra=details,
            )
            track_embedding_request(
                self.model_name, time.perf_counter() - start, outcome="fallback"
            )
            return self._synthetic(text)

        track_embedding_request(
            self.model_name, time.perf_counter() - start, outcome="success"
        )
        return result

    async def _request(self, text: str) -> dict[str, Any]:
        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"
        headers = {}
        if self._settings.api_key is not None:
            headers["Authorization"] = f"Bearer {self._settings.api_key.get_secret_value()}"

        async with response_deadline(client):
            response = await client.post(
                url,
                json={"model": self._settings.model, "input": text},
                headers=headers,
            )
        response.raise_for_status()
        return response.json()

    def _parse(self, text: str, data: dict[str, Any]) -> EmbeddingResult:
        """Turn a provider response into an EmbeddingResult.

        Raises:
            ValueError: If the response carries no embedding.
            EmbeddingProviderUnavailable: On dimension mismatch.
        """
        try:
            vector = [float(v) for v in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Invalid response from embedding provider: {e}") from e
        if not vector:
            raise ValueError("Embedding provider returned an empty vector")

        if len(vector) != self._settings.dimension:
            logger.error(
                "Embedding dimension mismatch",
                extra={"expected": self._settings.dimension, "actual": len(vector)},
            )
            raise EmbeddingProviderUnavailable(
                "Embedding provider returned a vector of unexpected dimension",
                details={"expected": self._settings.dimension, "actual": len(vector)},
            )

        created = data.get("created")
        created_at = (
            datetime.fromtimestamp(created, UTC)
            if isinstance(created, int | float)
            else datetime.now(UTC)
        )
        return EmbeddingResult(
            id=fingerprint(text),
            vector=vector,
            model=data.get("model") or self._settings.model,
            created_at=created_at,
        )

    def _synthetic(self, text: str) -> EmbeddingResult:
        return EmbeddingResult(
            id=fingerprint(text),
            vector=synthetic_embedding(text, self._settings.dimension),
            model=self._settings.model,
        )

    @staticmethod
    def _failure_details(exc: Exception) -> dict[str, Any]:
        if isinstance(exc, httpx.HTTPStatusError):
            return {
                "status": exc.response.status_code,
                "body": truncate(exc.response.text, 200),
            }
        return {"cause": truncate(exc, 200)}
