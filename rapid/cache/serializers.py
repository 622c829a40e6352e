"""
RapidCache — Pluggable serializers for byte-oriented stores.

Only remote backends (Redis) encode values. Plain fields are cached
already reduced to JSON-ready data; cached association values are raw
domain objects, so pickle is the default. Under JSON, association values
fail to encode and are simply not cached.
"""

from __future__ import annotations

import json
import logging
import pickle
from typing import Any

from .faults import CacheConfigFault

logger = logging.getLogger("rapid.cache.serializers")


class JsonCacheSerializer:
    """
    JSON serializer for human-readable stored values.

    Values that are not JSON-representable raise instead of being
    coerced, so a cache hit never differs from a fresh read.
    """

    def serialize(self, value: Any) -> bytes:
        """Serialize value to JSON bytes."""
        try:
            return json.dumps(value, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("JSON serialization failed: %s", e)
            raise

    def deserialize(self, data: bytes) -> Any:
        """Deserialize JSON bytes to value."""
        try:
            return json.loads(data.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("JSON deserialization failed: %s", e)
            raise


class PickleCacheSerializer:
    """
    Pickle serializer for arbitrary Python objects.

    WARNING: Only use with trusted data. Pickle can execute
    arbitrary code during deserialization.
    """

    def serialize(self, value: Any) -> bytes:
        """Serialize value via pickle."""
        try:
            return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            logger.warning("Pickle serialization failed: %s", e)
            raise

    def deserialize(self, data: bytes) -> Any:
        """Deserialize pickle bytes."""
        try:
            return pickle.loads(data)
        except (pickle.UnpicklingError, EOFError) as e:
            logger.warning("Pickle deserialization failed: %s", e)
            raise


def get_serializer(name: str = "pickle"):
    """
    Factory for serializer instances.

    Args:
        name: "json" or "pickle"

    Returns:
        CacheSerializer instance
    """
    serializers = {
        "json": JsonCacheSerializer,
        "pickle": PickleCacheSerializer,
    }

    cls = serializers.get(name)
    if cls is None:
        raise CacheConfigFault(f"unknown serializer '{name}', options: {sorted(serializers)}")

    return cls()
