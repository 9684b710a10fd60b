"""
Short-Lived Result Cache

Thread-safe in-process cache with a fixed time-to-live, used to avoid
recomputing shift charts on rapid dashboard refreshes. Results are pure
functions of their key, so two requests racing to fill the same entry is
harmless; the lock only protects the dictionary itself.
"""

import threading
import time
import logging
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class ResultCache:
    """In-memory TTL cache keyed by the full request parameter tuple."""

    def __init__(self, ttl_seconds: float = 30, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Lifetime of each entry in seconds
            clock: Monotonic time source, replaceable in tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.stats = {
            "hits": 0,
            "misses": 0,
            "expired": 0,
            "stores": 0
        }

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats["misses"] += 1
                return None

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.stats["expired"] += 1
                self.stats["misses"] += 1
                return None

            self.stats["hits"] += 1
            return value

    def set(self, key: Hashable, value: Any):
        """Store a value and drop every entry that has already expired."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            self.stats["expired"] += len(expired)

            self._entries[key] = (now + self.ttl_seconds, value)
            self.stats["stores"] += 1

    def clear(self):
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = self.stats.copy()
            stats["entries"] = len(self._entries)
        return stats
