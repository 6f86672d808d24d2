"""Tests for the embedding cache."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from grounded_rag.embeddings.cache import EmbeddingCache
from grounded_rag.embeddings.models import EmbeddingResult
from grounded_rag.embeddings.service import EmbeddingClient, fingerprint
from grounded_rag.exceptions import EmbeddingProviderUnavailable


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_client() -> MagicMock:
    client = MagicMock(spec=EmbeddingClient)

    async def embed(text: str) -> EmbeddingResult:
        return EmbeddingResult(id=fingerprint(text), vector=[float(len(text))], model="m")

    client.embed = AsyncMock(side_effect=embed)
    return client


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestEmbeddingCache:
    """Tests for EmbeddingCache."""

    async def test_miss_then_hit(self, clock: FakeClock) -> None:
        """Second lookup is served from the cache."""
        client = make_client()
        cache = EmbeddingCache(client, clock=clock)

        first = await cache.get_or_compute("hello")
        second = await cache.get_or_compute("hello")

        assert first is second
        assert client.embed.await_count == 1
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    async def test_entry_valid_up_to_ttl(self, clock: FakeClock) -> None:
        """An entry exactly TTL old is still returned."""
        client = make_client()
        cache = EmbeddingCache(client, ttl_seconds=3600.0, clock=clock)

        await cache.get_or_compute("hello")
        clock.advance(3600.0)
        await cache.get_or_compute("hello")

        assert client.embed.await_count == 1

    async def test_expired_after_ttl(self, clock: FakeClock) -> None:
        """At T + TTL + 1ms the entry is recomputed."""
        client = make_client()
        cache = EmbeddingCache(client, ttl_seconds=3600.0, clock=clock)

        await cache.get_or_compute("hello")
        clock.advance(3600.0 + 0.001)
        await cache.get_or_compute("hello")

        assert client.embed.await_count == 2
        assert cache.stats.expired == 1
        assert len(cache) == 1

    async def test_lru_eviction(self, clock: FakeClock) -> None:
        """The least recently used entry is evicted beyond capacity."""
        client = make_client()
        cache = EmbeddingCache(client, capacity=2, clock=clock)

        await cache.get_or_compute("a")
        await cache.get_or_compute("b")
        await cache.get_or_compute("a")  # refresh "a"
        await cache.get_or_compute("c")  # evicts "b"

        assert len(cache) == 2
        assert cache.stats.evictions == 1

        client.embed.reset_mock()
        await cache.get_or_compute("a")
        assert client.embed.await_count == 0
        await cache.get_or_compute("b")
        assert client.embed.await_count == 1

    async def test_errors_are_not_cached(self, clock: FakeClock) -> None:
        """Client failures propagate and leave no entry behind."""
        client = MagicMock(spec=EmbeddingClient)
        client.embed = AsyncMock(
            side_effect=EmbeddingProviderUnavailable("mismatch", {"expected": 8, "actual": 3})
        )
        cache = EmbeddingCache(client, clock=clock)

        with pytest.raises(EmbeddingProviderUnavailable):
            await cache.get_or_compute("hello")
        assert len(cache) == 0

    async def test_concurrent_lookups(self, clock: FakeClock) -> None:
        """Concurrent requests leave the cache consistent."""
        client = make_client()
        cache = EmbeddingCache(client, capacity=10, clock=clock)
        texts = [f"text-{i % 15}" for i in range(60)]

        results = await asyncio.gather(*(cache.get_or_compute(t) for t in texts))

        assert [r.id for r in results] == [fingerprint(t) for t in texts]
        assert len(cache) == 10

    async def test_clear(self, clock: FakeClock) -> None:
        """clear() drops every entry."""
        cache = EmbeddingCache(make_client(), clock=clock)
        await cache.get_or_compute("hello")

        cache.clear()

        assert len(cache) == 0

    def test_rejects_zero_capacity(self) -> None:
        """Capacity must be positive."""
        with pytest.raises(ValueError):
            EmbeddingCache(make_client(), capacity=0)
