"""
RapidCache — Null (no-op) backend.

Used when field caching is disabled without changing projector
declarations.
"""

from __future__ import annotations

from typing import Any, Optional

from ..core import CacheBackend, CacheEntry, CacheStats


class NullBackend(CacheBackend):
    """No-op cache backend: every read misses and writes are dropped."""

    __slots__ = ("_stats",)

    def __init__(self):
        self._stats = CacheStats(backend="null")

    @property
    def name(self) -> str:
        return "null"

    def get(self, key: str) -> Optional[CacheEntry]:
        self._stats.misses += 1
        return None

    def set(self, key: str, value: Any) -> None:
        self._stats.sets += 1

    def delete(self, key: str) -> bool:
        return False

    def clear(self) -> int:
        return 0

    def stats(self) -> CacheStats:
        return self._stats
