"""
RapidCache — Field cache storage for the projection engine.

The engine memoizes individual field values under keys derived from
``(schema, object identity, object version, field)``. This package
supplies the storage side:

- **Backends**: Memory (thread-safe LRU), Null, Redis
- **Key building**: readable or hashed keys with version prefixing
- **Serialization**: pickle / JSON codecs for byte-oriented stores
- **Faults**: typed cache faults

Usage::

    from rapid.cache import MemoryBackend
    from rapid import ProjectionEngine

    engine = ProjectionEngine(cache=MemoryBackend(max_size=5000))
"""

from .core import (
    CacheBackend,
    CacheConfig,
    CacheEntry,
    CacheKeyBuilder,
    CacheSerializer,
    CacheStats,
)
from .backends.memory import MemoryBackend
from .backends.null import NullBackend
from .key_builder import DefaultKeyBuilder, HashKeyBuilder
from .serializers import JsonCacheSerializer, PickleCacheSerializer, get_serializer
from .providers import create_cache_backend, create_key_builder
from .faults import (
    CacheFault,
    CacheBackendFault,
    CacheConfigFault,
    CacheSerializationFault,
)

__all__ = [
    "CacheBackend",
    "CacheConfig",
    "CacheEntry",
    "CacheKeyBuilder",
    "CacheSerializer",
    "CacheStats",
    "MemoryBackend",
    "NullBackend",
    "DefaultKeyBuilder",
    "HashKeyBuilder",
    "JsonCacheSerializer",
    "PickleCacheSerializer",
    "get_serializer",
    "create_cache_backend",
    "create_key_builder",
    "CacheFault",
    "CacheBackendFault",
    "CacheConfigFault",
    "CacheSerializationFault",
]
