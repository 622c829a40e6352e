"""
RapidCache — In-process memory backend.

LRU eviction over an OrderedDict. Every operation holds a
``threading.Lock`` so concurrent projections on worker threads never
observe a half-written entry.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections import OrderedDict
from typing import Any, Optional

from ..core import CacheBackend, CacheEntry, CacheStats

logger = logging.getLogger("rapid.cache.memory")


class MemoryBackend(CacheBackend):
    """
    In-memory cache backend with LRU eviction.

    - O(1) get/set/delete (via OrderedDict)
    - ``max_size <= 0`` disables capacity eviction
    """

    __slots__ = (
        "_max_size",
        "_store",
        "_lock",
        "_stats",
    )

    def __init__(self, max_size: int = 10000):
        """
        Args:
            max_size: Maximum number of entries
        """
        self._max_size = max_size
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats(max_size=max_size, backend="memory")

    @property
    def name(self) -> str:
        return "memory:lru"

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            self._store.move_to_end(key)
            entry.touch()
            self._stats.hits += 1
            return entry

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            if key in self._store:
                self._store.move_to_end(key)
            self._store[key] = CacheEntry(key=key, value=value)
            self._stats.sets += 1
            self._evict_locked()
            self._stats.size = len(self._store)

    def delete(self, key: str) -> bool:
        with self._lock:
            existed = self._store.pop(key, None) is not None
            if existed:
                self._stats.deletes += 1
                self._stats.size = len(self._store)
            return existed

    def clear(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._stats.size = 0
            return count

    def stats(self) -> CacheStats:
        with self._lock:
            self._stats.size = len(self._store)
            return dataclasses.replace(self._stats)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def _evict_locked(self) -> None:
        if self._max_size <= 0:
            return
        while len(self._store) > self._max_size:
            evicted, _ = self._store.popitem(last=False)
            self._stats.evictions += 1
            logger.debug("Evicted %s (capacity %d)", evicted, self._max_size)
