"""
Read-path cache for classification and link listings.

Services depend on the CacheBackend protocol only, so any key-value store
with TTL and prefix deletion can stand in (Redis, in-memory, a test fake).
Writes invalidate by key prefix, never per key.
"""

import threading
import time
from typing import Any, Callable, Optional, Protocol
import structlog

logger = structlog.get_logger(__name__)


# Key prefixes, one per cached view
PRODUCT_LINKS_PREFIX = "product-links:"
UNLINKED_PRODUCTS_PREFIX = "unlinked-products:"
CLASSIFICATIONS_PREFIX = "classifications:"


class CacheBackend(Protocol):
    """Minimal cache interface used by the services."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    def delete_by_prefix(self, prefix: str) -> int:
        ...


class InMemoryTTLCache:
    """
    Process-local TTL cache.

    Single-server only. Expired entries are dropped lazily on read and
    swept on every write.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)
            self._cleanup_expired()

    def delete_by_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def _cleanup_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (exp, _) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]

    def __len__(self) -> int:
        return len(self._entries)


def build_cache_key(prefix: str, *parts: Any) -> str:
    """Build a cache key under a prefix; None parts become empty segments."""
    return prefix + ":".join("" if p is None else str(p) for p in parts)


def cache_get(cache: CacheBackend, key: str) -> Optional[Any]:
    """Read from cache; a broken backend is treated as a miss."""
    try:
        return cache.get(key)
    except Exception as e:
        logger.warning("cache_get_failed", key=key, error=str(e))
        return None


def cache_set(cache: CacheBackend, key: str, value: Any, ttl_seconds: int) -> None:
    """Write to cache; a broken backend only costs the cached copy."""
    try:
        cache.set(key, value, ttl_seconds)
    except Exception as e:
        logger.warning("cache_set_failed", key=key, error=str(e))


def invalidate_prefixes(cache: CacheBackend, *prefixes: str) -> None:
    """Drop every cached entry under each prefix."""
    for prefix in prefixes:
        try:
            removed = cache.delete_by_prefix(prefix)
            logger.debug("cache_invalidated", prefix=prefix, removed=removed)
        except Exception as e:
            # Stale entries still expire by TTL
            logger.error("cache_invalidation_failed", prefix=prefix, error=str(e))


# Singleton instance for convenience
_cache: Optional[CacheBackend] = None

def get_cache() -> CacheBackend:
    """Get or create the shared cache backend."""
    global _cache
    if _cache is None:
        _cache = InMemoryTTLCache()
    return _cache


def set_cache(backend: Optional[CacheBackend]) -> None:
    """Replace the shared cache backend (None resets to a fresh in-memory cache)."""
    global _cache
    _cache = backend
