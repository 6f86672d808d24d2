"""Bounded retry with jittered exponential backoff for outbound calls."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from grounded_rag.config import RetrySettings
from grounded_rag.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_transient_http_error(exc: BaseException) -> bool:
    """Network failures and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def is_transient_qdrant_error(exc: BaseException) -> bool:
    """Qdrant client transport failures and 5xx responses."""
    if isinstance(exc, UnexpectedResponse):
        return (exc.status_code or 0) >= 500
    return isinstance(exc, ResponseHandlingException) or is_transient_http_error(exc)


class RetryPolicy:
    """Retry an async operation on transient errors.

    ``max_attempts`` counts the first call. The delay before attempt ``n + 1``
    is ``min(max_delay, base_delay * 2 ** (n - 1))`` scaled by a random factor
    in ``[1 - jitter, 1 + jitter]`` and capped at ``max_delay`` again.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.5,
        max_delay: float = 5.0,
        jitter: float = 0.5,
        retryable: Callable[[BaseException], bool] = is_transient_http_error,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.retryable = retryable
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: RetrySettings,
        retryable: Callable[[BaseException], bool] = is_transient_http_error,
    ) -> "RetryPolicy":
        """Build a policy from configuration."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            jitter=settings.jitter,
            retryable=retryable,
        )

    def with_predicate(self, retryable: Callable[[BaseException], bool]) -> "RetryPolicy":
        """Copy of this policy with a different retryable predicate."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            jitter=self.jitter,
            retryable=retryable,
            sleep=self._sleep,
        )

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after the given (1-based) failed attempt."""
        delay = min(self.max_delay, self.base_delay * 2 ** (attempt - 1))
        if self.jitter:
            delay *= random.uniform(1 - self.jitter, 1 + self.jitter)
        return min(self.max_delay, delay)

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        name: str = "operation",
    ) -> T:
        """Run ``operation`` until it succeeds or the policy gives up.

        The last error is re-raised unchanged.
        """
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.max_attempts or not self.retryable(e):
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    f"{name} failed, retrying in {delay:.2f}s",
                    extra={
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "error": type(e).__name__,
                    },
                )
                await self._sleep(delay)
                attempt += 1
