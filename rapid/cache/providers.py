"""
RapidCache — Backend and key builder factories.

Builds the field cache collaborators from ``CacheConfig``.
"""

from __future__ import annotations

import logging

from .core import CacheBackend, CacheConfig, CacheKeyBuilder
from .backends.memory import MemoryBackend
from .backends.null import NullBackend
from .faults import CacheConfigFault
from .key_builder import DefaultKeyBuilder, HashKeyBuilder

logger = logging.getLogger("rapid.cache.providers")


def create_cache_backend(config: CacheConfig) -> CacheBackend:
    """
    Factory: create cache backend from configuration.

    Args:
        config: CacheConfig instance

    Returns:
        Configured CacheBackend
    """
    if not config.enabled:
        return NullBackend()

    backend_type = config.backend.lower()

    if backend_type == "memory":
        return MemoryBackend(max_size=config.max_size)

    elif backend_type == "redis":
        from .backends.redis import RedisBackend
        from .serializers import get_serializer

        return RedisBackend(
            url=config.redis_url,
            socket_timeout=config.redis_socket_timeout,
            key_prefix=config.key_prefix,
            serializer=get_serializer(config.serializer),
        )

    elif backend_type == "null":
        return NullBackend()

    raise CacheConfigFault(f"unknown cache backend '{config.backend}'")


def create_key_builder(config: CacheConfig) -> CacheKeyBuilder:
    """Factory: key builder honouring prefix, key version and hashing."""
    if config.hash_keys:
        return HashKeyBuilder(prefix=config.key_prefix, version=config.key_version)
    return DefaultKeyBuilder(prefix=config.key_prefix, version=config.key_version)
