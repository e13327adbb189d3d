"""
Profile Cache - Bounded, optionally expiring, thread-safe memoization

Used by the knowledge graph service to compute each user's ability
profile once. Entries are evicted least-recently-used when the cache
is full and, if a TTL is set, expire after ttl_seconds.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from .logger import get_logger

logger = get_logger(__name__)


class ProfileCache:
    """
    Thread-safe LRU cache with optional TTL.

    Usage:
        cache = ProfileCache(max_size=128, ttl_seconds=3600)
        profile = cache.get_or_compute("user-1", compute_profile)
    """

    def __init__(
        self,
        max_size: int = 256,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            return self._get_locked(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._set_locked(key, value)

    def get_or_compute(self, key: str, compute: Callable[[str], Any]) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss.

        The lock is held while computing so concurrent callers for the
        same key compute the value once.
        """
        with self._lock:
            value = self._get_locked(key)
            if value is not None:
                return value
            value = compute(key)
            self._set_locked(key, value)
            logger.debug(f"[CACHE] Stored profile for {key}")
            return value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def _get_locked(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def _set_locked(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"[CACHE] Evicted profile for {evicted}")
