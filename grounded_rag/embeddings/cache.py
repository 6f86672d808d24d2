"""Bounded LRU embedding cache with absolute per-entry TTL."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from grounded_rag.embeddings.models import EmbeddingResult
from grounded_rag.embeddings.service import EmbeddingClient
from grounded_rag.logging_config import get_logger
from grounded_rag.observability.metrics import track_cache_lookup

logger = get_logger(__name__)


@dataclass
class CacheStats:
    """Lookup counters for an EmbeddingCache."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    evictions: int = 0


class EmbeddingCache:
    """Memoizes embeddings for previously seen text.

    Entries are evicted least-recently-used beyond ``capacity`` and are never
    returned once older than ``ttl_seconds``. The lock guards only the entry
    map and is never held while the client computes, so concurrent misses for
    the same text may each compute; the last insert wins.
    """

    def __init__(
        self,
        client: EmbeddingClient,
        capacity: int = 1000,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            client: Embedding client used on cache misses.
            capacity: Maximum number of entries.
            ttl_seconds: Absolute time-to-live of an entry.
            clock: Monotonic time source in seconds.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._client = client
        self._capacity = capacity
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, EmbeddingResult]] = OrderedDict()
        self._lock = threading.Lock()
        self.stats = CacheStats()

    @property
    def client(self) -> EmbeddingClient:
        return self._client

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        logger.debug(f"Embedding cache cleared ({dropped} entries)")

    def _lookup(self, text: str) -> EmbeddingResult | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(text)
            if entry is None:
                self.stats.misses += 1
                track_cache_lookup("miss")
                return None

            stored_at, result = entry
            if now - stored_at > self._ttl:
                del self._entries[text]
                self.stats.expired += 1
                track_cache_lookup("expired")
                return None

            self._entries.move_to_end(text)
            self.stats.hits += 1
            track_cache_lookup("hit")
            return result

    def _store(self, text: str, result: EmbeddingResult) -> None:
        now = self._clock()
        with self._lock:
            self._entries[text] = (now, result)
            self._entries.move_to_end(text)
            while len(self._entries) > self._capacity:
                self._entries.popitem(last=False)
                self.stats.evictions += 1

    async def get_or_compute(self, text: str) -> EmbeddingResult:
        """Return the cached embedding for ``text`` or compute and cache it.

        Raises:
            EmbeddingProviderUnavailable: Propagated from the client.
        """
        cached = self._lookup(text)
        if cached is not None:
            return cached

        result = await self._client.embed(text)
        self._store(text, result)
        return result
