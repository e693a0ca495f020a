"""
Cache Infrastructure

Provides caching layers for expensive API calls.
"""

from __future__ import annotations

from physio_pubmed.infrastructure.cache.response_cache import (
    MISS,
    CacheEntry,
    CacheStats,
    ResponseCache,
    make_key,
)

__all__ = [
    "MISS",
    "CacheEntry",
    "CacheStats",
    "ResponseCache",
    "make_key",
]
