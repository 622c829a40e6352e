"""
RapidCache — Field cache key builders.

A field cache key encodes the object's identity and version, so a
changed object simply stops matching its old entries. There is no
explicit eviction on write.
"""

from __future__ import annotations

import datetime
import hashlib
from typing import Any


def format_version(version: Any) -> str:
    """Render an object version (timestamp or counter) as a key segment."""
    if isinstance(version, datetime.datetime):
        return version.isoformat()
    if isinstance(version, datetime.date):
        return version.isoformat()
    return str(version)


class DefaultKeyBuilder:
    """
    Default key builder using readable segments.

    Pattern: ``{prefix}v{version}:{namespace}:{identity}.{object_version}/{field}``

    Example: ``rapid:User:42.2024-05-01T10:00:00/email``

    Key version support enables mass-invalidation by incrementing
    the version number in config, making all old keys invisible.
    """

    def __init__(self, prefix: str = "", version: int = 0):
        """
        Args:
            prefix: Global prefix prepended to every key.
            version: Key version. When > 0, embeds version in key.
                     Incrementing invalidates all previous keys.
        """
        self._prefix = prefix
        self._version = version

    def _head(self, namespace: str) -> str:
        if self._version > 0:
            return f"{self._prefix}v{self._version}:{namespace}:"
        return f"{self._prefix}{namespace}:"

    def build(self, namespace: str, identity: Any, version: Any, field_name: str) -> str:
        """Build qualified field cache key."""
        return f"{self._head(namespace)}{identity}.{format_version(version)}/{field_name}"


class HashKeyBuilder(DefaultKeyBuilder):
    """
    Hash-based key builder for long or complex identities.

    Uses SHA-256 to produce fixed-length keys, preventing
    issues with Redis key length limits or memory overhead.

    Pattern: ``{prefix}v{version}:{namespace}:{sha256_hex[:16]}``
    """

    def __init__(self, prefix: str = "", version: int = 0, hash_length: int = 16):
        """
        Args:
            prefix: Global prefix prepended to every key.
            version: Key version for mass-invalidation
            hash_length: Length of hex hash suffix (max 64 for SHA-256)
        """
        super().__init__(prefix=prefix, version=version)
        self._hash_length = min(hash_length, 64)

    def build(self, namespace: str, identity: Any, version: Any, field_name: str) -> str:
        """Build hash-based field cache key."""
        raw = f"{identity}.{format_version(version)}/{field_name}"
        digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()[:self._hash_length]
        return f"{self._head(namespace)}{digest}"
