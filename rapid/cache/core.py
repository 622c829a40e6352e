"""
RapidCache — Core types, protocols, and data structures.

Defines the storage contract the field cache relies on. The projection
engine only ever calls ``get`` and ``set``; everything else exists for
operators and tests.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Optional,
    Protocol,
    runtime_checkable,
)


# ============================================================================
# Cache Entry
# ============================================================================

@dataclass(slots=True)
class CacheEntry:
    """
    Single cache entry with metadata.

    Returned by ``CacheBackend.get`` so a stored ``None`` stays
    distinguishable from a miss.
    """
    key: str
    value: Any
    created_at: float = field(default_factory=time.monotonic)
    last_accessed: float = field(default_factory=time.monotonic)
    access_count: int = 0

    @property
    def age(self) -> float:
        """Age of entry in seconds since creation."""
        return time.monotonic() - self.created_at

    def touch(self) -> None:
        """Update access metadata."""
        self.last_accessed = time.monotonic()
        self.access_count += 1

    def __repr__(self) -> str:
        return f"<CacheEntry key={self.key!r} hits={self.access_count}>"


# ============================================================================
# Cache Stats
# ============================================================================

@dataclass
class CacheStats:
    """Aggregate cache statistics for observability."""
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    errors: int = 0
    size: int = 0               # Current number of entries
    max_size: int = 0           # Maximum capacity
    backend: str = "unknown"

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as a percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for diagnostics."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "evictions": self.evictions,
            "errors": self.errors,
            "hit_rate": round(self.hit_rate, 2),
            "size": self.size,
            "max_size": self.max_size,
            "backend": self.backend,
        }


# ============================================================================
# Cache Configuration
# ============================================================================

@dataclass
class CacheConfig:
    """
    Field cache configuration.

    Loaded from the ``cache`` section via ``ConfigLoader.get_engine_config()``.
    """
    enabled: bool = True
    backend: str = "memory"          # "memory", "redis", "null"
    max_size: int = 10000            # Max entries for memory backend
    key_prefix: str = "rapid:"       # Key prefix for all entries
    key_version: int = 0             # Increment to mass-invalidate all keys
    hash_keys: bool = False          # Hash the identity/version/field tail
    serializer: str = "pickle"       # "pickle", "json" (byte-oriented stores)

    # Redis-specific
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 5.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "enabled": self.enabled,
            "backend": self.backend,
            "max_size": self.max_size,
            "key_prefix": self.key_prefix,
            "key_version": self.key_version,
            "hash_keys": self.hash_keys,
            "serializer": self.serializer,
            "redis_url": self.redis_url,
            "redis_socket_timeout": self.redis_socket_timeout,
        }


# ============================================================================
# Cache Serializer Protocol
# ============================================================================

@runtime_checkable
class CacheSerializer(Protocol):
    """Protocol for cache value serialization."""

    def serialize(self, value: Any) -> bytes:
        """Serialize a value to bytes."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Deserialize bytes back to a value."""
        ...


# ============================================================================
# Cache Key Builder Protocol
# ============================================================================

@runtime_checkable
class CacheKeyBuilder(Protocol):
    """Protocol for building field cache keys."""

    def build(self, namespace: str, identity: Any, version: Any, field_name: str) -> str:
        """
        Build a fully qualified cache key.

        Args:
            namespace: Schema name owning the field
            identity: Object identity (primary key)
            version: Object version (timestamp or counter)
            field_name: Field being cached

        Returns:
            Qualified cache key string
        """
        ...


# ============================================================================
# Cache Backend Contract
# ============================================================================

class CacheBackend(ABC):
    """
    Abstract cache backend defining the storage contract.

    Backends are synchronous. A single ``get`` or ``set`` for one key must
    never interleave with another operation on the same key.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in logs and stats."""
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Retrieve entry by key.

        Returns None if key doesn't exist.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a value under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete entry by key.

        Returns True if the key existed and was deleted.
        """
        ...

    @abstractmethod
    def clear(self) -> int:
        """
        Clear all entries.

        Returns:
            Number of entries cleared (best effort for remote stores).
        """
        ...

    @abstractmethod
    def stats(self) -> CacheStats:
        """Snapshot of backend statistics."""
        ...

    def close(self) -> None:
        """Release backend resources. Default is a no-op."""
        return None
