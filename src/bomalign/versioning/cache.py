"""TTL cache for version candidate lookups."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL."""

    value: T
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class TTLCache:
    """Small thread-safe key/value cache with per-entry expiry."""

    def __init__(self, default_ttl: int = 600, max_entries: int = 10000):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds.
            max_entries: Entries kept before the oldest are evicted.
        """
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._cache: Dict[str, CacheEntry[Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None if missing/expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._cache[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Optional TTL override in seconds.
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        with self._lock:
            self._cache[key] = CacheEntry(value=value, expires_at=time.time() + effective_ttl)
            if len(self._cache) > self._max_entries:
                self._evict_oldest(max(1, self._max_entries // 10))

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def _evict_oldest(self, count: int) -> None:
        """Evict the oldest entries. Caller holds the lock."""
        oldest = sorted(self._cache.items(), key=lambda kv: kv[1].created_at)[:count]
        for key, _ in oldest:
            del self._cache[key]
