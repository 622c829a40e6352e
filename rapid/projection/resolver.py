"""
Rapid Value Resolver — reads, gates, caches and shapes one field value.

Resolution order for a selected field:

1. cacheable field with a live cache entry -> cached value
   (permission check skipped; entries are written post-permission)
2. projector hook, mapping key or object attribute -> raw value,
   else ``InvalidField``
3. permission predicate; anything but ``True`` omits the field
4. cacheable field -> store the value: plain data for attributes, the
   raw (materialized) value for associations
5. associations recurse through the engine; other values are
   reduced to plain data with ``to_primitive``
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..cache.core import CacheBackend, CacheKeyBuilder
from ..cache.faults import CacheFault
from .dispatch import materialize
from .exceptions import InvalidField
from .schema import Schema
from .structural import is_collection, to_primitive

if TYPE_CHECKING:
    from ..config import EngineConfig
    from .projector import Projector

logger = logging.getLogger("rapid.projection.resolver")


class _Omitted:
    def __repr__(self) -> str:
        return "OMITTED"

    def __bool__(self) -> bool:
        return False


OMITTED: Any = _Omitted()
"""Returned for fields hidden by a permission predicate."""

Recurse = Callable[[Any, Dict[str, Any]], Any]


def read_attribute(obj: Any, name: str) -> Any:
    """Attribute or mapping key, None when absent."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


class ValueResolver:
    """
    Per-engine field resolver.

    Holds the cache collaborators and a ``recurse`` callback used to
    project association values through the owning engine.
    """

    def __init__(
        self,
        cache: CacheBackend,
        key_builder: CacheKeyBuilder,
        config: "EngineConfig",
        recurse: Recurse,
    ):
        self.cache = cache
        self.key_builder = key_builder
        self.config = config
        self._recurse = recurse

    def resolve(self, projector: "Projector", field_name: str) -> Any:
        """Projected value of ``field_name``, or ``OMITTED``."""
        schema = projector.schema
        is_association = schema.is_association(field_name)

        key = None
        if schema.is_cacheable(field_name):
            key = self.cache_key(schema, projector.object, field_name)

        if key is not None:
            entry = self._cache_get(key)
            if entry is not None:
                logger.debug("Cache hit %s", key)
                return self._shape(projector, field_name, entry.value, is_association)
            logger.debug("Cache miss %s", key)

        raw = self.read(projector, field_name)

        predicate = schema.permission_for(field_name)
        if predicate is not None:
            allowed = predicate(projector.object, projector.current_user, raw)
            if allowed is not True:
                logger.debug("Omitting %s.%s: permission denied", schema.name, field_name)
                return OMITTED

        if is_association:
            if is_collection(raw):
                raw = materialize(raw)
        else:
            raw = to_primitive(raw)

        if key is not None:
            self._cache_set(key, raw)

        return self._shape(projector, field_name, raw, is_association)

    # ── Reading ──────────────────────────────────────────────────────────

    def read(self, projector: "Projector", field_name: str) -> Any:
        """
        Raw value: projector hook first, then the object's own accessor.

        Bound methods are called without arguments; properties and plain
        attributes are read as-is.
        """
        if projector.has_hook(field_name):
            return _call_if_method(getattr(projector, field_name))

        obj = projector.object
        if isinstance(obj, Mapping):
            if field_name in obj:
                return obj[field_name]
            raise InvalidField(field_name, obj)

        try:
            value = getattr(obj, field_name)
        except AttributeError:
            raise InvalidField(field_name, obj) from None
        return _call_if_method(value)

    def _shape(self, projector: "Projector", field_name: str, value: Any, is_association: bool) -> Any:
        if is_association:
            return self._recurse(value, projector.options.child_raw(field_name))
        return to_primitive(value)

    # ── Cache ────────────────────────────────────────────────────────────

    def cache_key(self, schema: Schema, obj: Any, field_name: str) -> Optional[str]:
        """Key for ``(identity, version, field)``; None when the object has no identity or version."""
        identity = read_attribute(obj, self.config.identity_attribute)
        version = read_attribute(obj, self.config.version_attribute)
        if identity is None or version is None:
            return None
        return self.key_builder.build(schema.name, identity, version, field_name)

    def _cache_get(self, key: str):
        try:
            return self.cache.get(key)
        except CacheFault as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

    def _cache_set(self, key: str, value: Any) -> None:
        try:
            self.cache.set(key, value)
        except CacheFault as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)


def _call_if_method(value: Any) -> Any:
    if inspect.ismethod(value):
        return value()
    return value
