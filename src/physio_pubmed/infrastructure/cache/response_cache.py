"""
Response Cache

In-memory TTL cache for E-utilities responses and finished search results.

Features:
- Per-entry time-to-live with lazy expiry on read
- Bounded size: expired entries are purged first, then the oldest 20%
  by insertion time
- Canonical keys built from endpoint + sorted parameters
- Injectable clock for tests
- Hit/miss/eviction statistics
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0
DEFAULT_MAX_ENTRIES = 500
EVICTION_FRACTION = 0.2

# Request parameters that identify the caller, not the query
CREDENTIAL_PARAMS = frozenset({"api_key", "email", "tool"})


class _Miss:
    def __repr__(self) -> str:
        return "MISS"


MISS: Any = _Miss()


@dataclass
class CacheEntry:
    """One cached payload."""

    key: str
    payload: Any
    expires_at: float
    stored_at: float


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        """Total cache requests."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        """Reset statistics."""
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0


def make_key(endpoint: str, params: Mapping[str, Any]) -> str:
    """
    Build the canonical cache key for an E-utilities request.

    Parameters are sorted by name, list values are joined in their given
    order, and credential parameters are left out so changing the API key
    does not split the cache.

    Args:
        endpoint: Endpoint name, e.g. ``esearch.fcgi``
        params: Request parameters

    Returns:
        Key string such as ``esearch.fcgi?db=pubmed&retmax=20&term=knee``
    """
    parts = []
    for name in sorted(params):
        if name in CREDENTIAL_PARAMS:
            continue
        value = params[name]
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        parts.append(f"{name}={value}")
    return f"{endpoint}?{'&'.join(parts)}"


class ResponseCache:
    """
    Bounded key-value cache with per-entry TTL.

    Expired entries are never returned. Nothing is evicted in the
    background; expiry is checked when an entry is read and when the cache
    is full on insert.

    Example:
        cache = ResponseCache(ttl=300, max_entries=500)
        cache.set(key, payload)
        payload = cache.get(key)
        if cache.get(key, MISS) is MISS:
            ...
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            ttl: Default time-to-live in seconds
            max_entries: Maximum number of entries
            clock: Monotonic time source
        """
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        # dicts keep insertion order, which is the eviction order
        self._entries: dict[str, CacheEntry] = {}
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a live value.

        Args:
            key: Cache key
            default: Returned on a miss; pass ``MISS`` to tell a cached
                ``None`` apart from an absent entry

        Returns:
            Cached value, or ``default`` if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            return default
        if entry.expires_at <= self._clock():
            del self._entries[key]
            self._stats.expirations += 1
            self._stats.misses += 1
            return default
        self._stats.hits += 1
        logger.debug(f"Cache hit: {key}")
        return entry.payload

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """
        Store a value, replacing any previous entry for ``key``.

        Args:
            key: Cache key
            value: Value to cache (empty payloads included)
            ttl: Override the default time-to-live
        """
        now = self._clock()
        self._entries.pop(key, None)
        if len(self._entries) >= self._max_entries:
            self._make_room(now)
        self._entries[key] = CacheEntry(
            key=key,
            payload=value,
            expires_at=now + (self._ttl if ttl is None else ttl),
            stored_at=now,
        )

    def has(self, key: str) -> bool:
        """True when ``key`` holds a live entry. Does not touch statistics."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.expires_at <= self._clock():
            del self._entries[key]
            self._stats.expirations += 1
            return False
        return True

    def invalidate(self, key: str) -> bool:
        """
        Invalidate cache entry.

        Returns:
            True if entry was removed
        """
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._entries)
        self._entries.clear()
        return count

    def cleanup_expired(self, now: float | None = None) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        if now is None:
            now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._stats.expirations += len(expired)
        return len(expired)

    def _make_room(self, now: float) -> None:
        self.cleanup_expired(now)
        if len(self._entries) < self._max_entries:
            return

        count = max(1, math.floor(self._max_entries * EVICTION_FRACTION))
        oldest = sorted(self._entries.values(), key=lambda e: e.stored_at)[:count]
        for entry in oldest:
            del self._entries[entry.key]
        self._stats.evictions += len(oldest)
        logger.debug(f"Cache full, evicted {len(oldest)} oldest entries")

    def __len__(self) -> int:
        """Get number of stored entries (expired ones not yet purged included)."""
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)
