"""
RapidCache — Redis backend for field caches shared across processes.

Single-key GET/SET are atomic on the server, which is all the field
cache needs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import redis

from ..core import CacheBackend, CacheEntry, CacheSerializer, CacheStats
from ..faults import CacheBackendFault, CacheSerializationFault
from ..serializers import PickleCacheSerializer

logger = logging.getLogger("rapid.cache.redis")


class RedisBackend(CacheBackend):
    """
    Redis-backed cache using redis-py.

    Keys are stored as given; the key builder already applies the
    configured prefix, so ``clear`` scans that prefix.
    """

    __slots__ = (
        "_url",
        "_key_prefix",
        "_serializer",
        "_redis",
        "_stats",
    )

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        socket_timeout: float = 5.0,
        key_prefix: str = "rapid:",
        serializer: Optional[CacheSerializer] = None,
        client: Optional["redis.Redis"] = None,
    ):
        self._url = url
        self._key_prefix = key_prefix
        self._serializer = serializer or PickleCacheSerializer()
        self._redis = client or redis.Redis.from_url(url, socket_timeout=socket_timeout)
        self._stats = CacheStats(backend="redis")

    @property
    def name(self) -> str:
        return "redis"

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self._redis.get(key)
        except redis.RedisError as e:
            self._stats.errors += 1
            raise CacheBackendFault(self.name, "get", str(e)) from e

        if raw is None:
            self._stats.misses += 1
            return None

        try:
            value = self._serializer.deserialize(raw)
        except Exception as e:
            self._stats.errors += 1
            raise CacheSerializationFault(key, "deserialize", str(e)) from e

        self._stats.hits += 1
        return CacheEntry(key=key, value=value)

    def set(self, key: str, value: Any) -> None:
        try:
            data = self._serializer.serialize(value)
        except Exception as e:
            self._stats.errors += 1
            raise CacheSerializationFault(key, "serialize", str(e)) from e

        try:
            self._redis.set(key, data)
        except redis.RedisError as e:
            self._stats.errors += 1
            raise CacheBackendFault(self.name, "set", str(e)) from e
        self._stats.sets += 1

    def delete(self, key: str) -> bool:
        try:
            removed = self._redis.delete(key)
        except redis.RedisError as e:
            self._stats.errors += 1
            raise CacheBackendFault(self.name, "delete", str(e)) from e
        if removed:
            self._stats.deletes += 1
        return bool(removed)

    def clear(self) -> int:
        count = 0
        try:
            for key in self._redis.scan_iter(match=f"{self._key_prefix}*"):
                count += self._redis.delete(key)
        except redis.RedisError as e:
            self._stats.errors += 1
            raise CacheBackendFault(self.name, "clear", str(e)) from e
        logger.debug("Cleared %d keys under %s*", count, self._key_prefix)
        return count

    def stats(self) -> CacheStats:
        return self._stats

    def close(self) -> None:
        self._redis.close()
