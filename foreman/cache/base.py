#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""In-memory TTL cache."""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    """A cache entry with metadata."""
    value: Any
    timestamp: float
    access_count: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)


class TTLCache:
    """
    Keyed cache with time-to-live expiration and LRU eviction.

    Owned by the component that uses it rather than shared process-wide, so
    tests can create a fresh instance or call ``clear()``.
    """

    def __init__(
        self,
        name: str = "cache",
        ttl: float = 60.0,
        max_entries: int = 128,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock or time.monotonic

        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
        }

    def _is_expired(self, entry: CacheEntry) -> bool:
        if self.ttl <= 0:  # TTL of 0 or negative means never expire
            return False
        return (self._clock() - entry.timestamp) >= self.ttl

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value, or ``default`` if missing or expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self.stats["misses"] += 1
                return default

            if self._is_expired(entry):
                del self._cache[key]
                self.stats["expirations"] += 1
                self.stats["misses"] += 1
                return default

            entry.access_count += 1
            self._cache.move_to_end(key)
            self.stats["hits"] += 1
            return entry.value

    def set(self, key: str, value: Any, metadata: Optional[Dict[str, Any]] = None):
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            while self.max_entries > 0 and len(self._cache) >= self.max_entries:
                self._cache.popitem(last=False)
                self.stats["evictions"] += 1
            self._cache[key] = CacheEntry(
                value=value,
                timestamp=self._clock(),
                metadata=metadata or {},
            )

    def invalidate(self, key: str) -> bool:
        """Remove a key; returns True if it was present."""
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self.stats["hits"] + self.stats["misses"]
            hit_rate = (self.stats["hits"] / total * 100) if total > 0 else 0
            return {
                "name": self.name,
                "entries": len(self._cache),
                "ttl": self.ttl,
                "hit_rate": round(hit_rate, 2),
                **self.stats,
            }
