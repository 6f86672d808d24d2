"""Application exception hierarchy.

All custom exceptions inherit from RAGServiceError.
Each exception carries an error code that the API layer maps to an HTTP
status and renders into the error envelope.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes surfaced to API clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMBEDDING_PROVIDER_UNAVAILABLE = "EMBEDDING_PROVIDER_UNAVAILABLE"
    VECTOR_STORE_UNAVAILABLE = "VECTOR_STORE_UNAVAILABLE"
    LLM_PROVIDER_UNAVAILABLE = "LLM_PROVIDER_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def http_status(self) -> int:
        """HTTP status code for this error kind."""
        return _HTTP_STATUS[self]


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.EMBEDDING_PROVIDER_UNAVAILABLE: 503,
    ErrorCode.VECTOR_STORE_UNAVAILABLE: 503,
    ErrorCode.LLM_PROVIDER_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def truncate(value: object, limit: int) -> str:
    """Render a value as a string of at most ``limit`` characters."""
    if isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value)
    return text[:limit]


class RAGServiceError(Exception):
    """Base exception for all service errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Short structured context (status codes, truncated bodies).
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, trace_id: str) -> dict[str, Any]:
        """Convert exception to the API error envelope."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details or None,
                "trace_id": trace_id,
            }
        }


class ValidationError(RAGServiceError):
    """Malformed or empty request field."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class EmbeddingProviderUnavailable(RAGServiceError):
    """No usable embedding vector could be produced."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.EMBEDDING_PROVIDER_UNAVAILABLE, details)


class VectorStoreUnavailable(RAGServiceError):
    """Vector store transport, server or consistency failure."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VECTOR_STORE_UNAVAILABLE, details)


class LlmProviderUnavailable(RAGServiceError):
    """Chat-completion provider failed explicitly."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.LLM_PROVIDER_UNAVAILABLE, details)
