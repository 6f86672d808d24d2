"""Tests for the shared outbound HTTP client."""

import asyncio

import httpx
import pytest

from grounded_rag.config import HTTPSettings
from grounded_rag.http_client import create_http_client, response_deadline
from grounded_rag.retry import is_transient_http_error


async def slow_handler(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(1.0)
    return httpx.Response(200, json={})


class TestCreateHttpClient:
    """Tests for create_http_client."""

    async def test_default_timeouts(self) -> None:
        """Defaults are 3s connect and 10s response."""
        client = create_http_client()
        try:
            assert client.timeout.connect == 3.0
            assert client.timeout.read == 10.0
        finally:
            await client.aclose()

    async def test_custom_timeouts(self) -> None:
        """Timeouts come from settings."""
        client = create_http_client(HTTPSettings(connect_timeout=1.0, read_timeout=2.5))
        try:
            assert client.timeout.connect == 1.0
            assert client.timeout.read == 2.5
        finally:
            await client.aclose()


class TestResponseDeadline:
    """Tests for the whole-exchange deadline."""

    async def test_slow_response_times_out(self) -> None:
        """An exchange outliving the read timeout fails as a transient timeout."""
        transport = httpx.MockTransport(slow_handler)
        async with httpx.AsyncClient(transport=transport, timeout=0.05) as client:
            with pytest.raises(httpx.ReadTimeout) as exc_info:
                async with response_deadline(client):
                    await client.get("http://provider/slow")

        assert is_transient_http_error(exc_info.value)

    async def test_fast_response_passes(self) -> None:
        """Responses within the deadline are returned untouched."""
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        async with httpx.AsyncClient(transport=transport, timeout=0.5) as client:
            async with response_deadline(client):
                response = await client.get("http://provider/fast")

        assert response.status_code == 204
