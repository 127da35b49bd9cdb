"""
Small in-process TTL cache for read-mostly collaborator results.

Entries expire `ttl_seconds` after they were stored. A ttl of 0 disables the
cache: get() always misses and set() stores nothing.
"""

import threading
import time
from collections import OrderedDict


class TTLCache:
    def __init__(self, ttl_seconds: float, max_entries: int = 256, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict = OrderedDict()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, key):
        """Return the cached value, or None when missing or expired."""
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key, value) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock(), value)
            # Oldest insert goes first
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._entries), "ttlSeconds": self.ttl_seconds, "maxEntries": self.max_entries}
