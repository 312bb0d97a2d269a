"""
Scan cache - reuses usage indexes for a bounded time.

The cache is an explicit object handed to the indexer, so one process can
serve several corpora without sharing state between them.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass

from chuk_mcp_tokens.constants import DEFAULT_USAGE_CACHE_TTL
from chuk_mcp_tokens.models.usage import UsageIndex


@dataclass(frozen=True)
class CacheEntry:
    """A cached index and when it was built."""

    index: UsageIndex
    created_at: float


class ScanCache:
    """Time-bounded cache of usage indexes keyed by corpus and signatures."""

    def __init__(
        self,
        ttl: float = DEFAULT_USAGE_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl: Seconds an index stays fresh (0 disables caching)
            clock: Time source, injectable for tests
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}

    def get(self, key: Hashable) -> UsageIndex | None:
        """Return a fresh cached index or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at >= self.ttl:
            del self._entries[key]
            return None
        return entry.index

    def put(self, key: Hashable, index: UsageIndex) -> None:
        """Store an index, dropping any entries that have expired."""
        now = self._clock()
        self._entries = {
            k: entry for k, entry in self._entries.items() if now - entry.created_at < self.ttl
        }
        self._entries[key] = CacheEntry(index=index, created_at=now)

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one entry, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
