"""Shared outbound HTTP client for the embedding and chat providers."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from grounded_rag.config import HTTPSettings
from grounded_rag.logging_config import get_logger

logger = get_logger(__name__)


async def _log_request(request: httpx.Request) -> None:
    logger.debug(f"HTTP {request.method} {request.url}")


def create_http_client(settings: HTTPSettings | None = None) -> httpx.AsyncClient:
    """Create a pooled async client with bounded connect and response timeouts.

    Args:
        settings: HTTP configuration. Uses defaults if not provided.

    Returns:
        Configured ``httpx.AsyncClient``; the caller owns and closes it.
    """
    settings = settings or HTTPSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout),
        limits=httpx.Limits(max_connections=settings.max_connections),
        event_hooks={"request": [_log_request]},
    )


@asynccontextmanager
async def response_deadline(client: httpx.AsyncClient) -> AsyncIterator[None]:
    """Bound a whole request/response exchange by the client's read timeout.

    httpx applies its read timeout per socket read, so a server trickling
    bytes could hold a call open indefinitely. Expiry is raised as
    ``httpx.ReadTimeout`` so retry and error handling treat it as transport
    failure.
    """
    seconds = client.timeout.read
    try:
        async with asyncio.timeout(seconds):
            yield
    except TimeoutError as e:
        raise httpx.ReadTimeout(f"No complete response within {seconds}s") from e
