"""
Rapid Projection Engine — the ``serialize`` entry point.

Pipeline for each level of a projection:

    Option Resolver -> association validation -> Field Selector
        -> Value Resolver (per field, recursing into associations)

The engine is synchronous and holds no per-call state; one instance can
serve concurrent callers. Its only shared mutable collaborator is the
field cache backend.

Usage::

    from rapid import ProjectionEngine, EngineConfig

    engine = ProjectionEngine(EngineConfig(warn_invalid_fields=True))
    result = engine.project(user, params={"fields": "id,name"})
    result.data       # {"id": 1, "name": "Mike"}
    result.warnings   # []
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Type, Union

from .cache.core import CacheBackend, CacheKeyBuilder
from .cache.providers import create_cache_backend, create_key_builder
from .config import EngineConfig
from .projection.dispatch import (
    CollectionProjector,
    Dispatched,
    ProjectorRegistry,
    default_registry,
    materialize,
)
from .projection.exceptions import ProjectionFault, ProjectionWarning, SchemaFault
from .projection.options import UNSET, RequestOptions, merge_raw, resolve_options
from .projection.policies import check_associations, collect_warnings
from .projection.projector import Projector
from .projection.resolver import OMITTED, ValueResolver
from .projection.selector import select_fields
from .projection.structural import is_collection, to_primitive

logger = logging.getLogger("rapid.projection")

ProjectorArg = Union[Type[Projector], CollectionProjector, None]


@dataclass
class ProjectionResult:
    """Top-level payload plus the advisory warnings side-channel."""
    data: Any
    warnings: List[ProjectionWarning] = field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [str(w) for w in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        """Envelope shape: ``warnings`` is a sibling of ``data``, never inside it."""
        envelope: Dict[str, Any] = {"data": self.data}
        if self.warnings:
            envelope["warnings"] = self.messages
        return envelope


class ProjectionEngine:
    """
    Projects object graphs into plain data according to registered projectors.

    Args:
        config: Engine switches; defaults to ``EngineConfig()``.
        registry: Projector registry; defaults to the process-wide one.
        cache: Field cache backend; defaults to one built from ``config.cache``.
        key_builder: Cache key builder; defaults to one built from ``config.cache``.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        registry: Optional[ProjectorRegistry] = None,
        cache: Optional[CacheBackend] = None,
        key_builder: Optional[CacheKeyBuilder] = None,
    ):
        self.config = config if config is not None else EngineConfig()
        self.registry = registry if registry is not None else default_registry
        self.cache = cache if cache is not None else create_cache_backend(self.config.cache)
        self.key_builder = key_builder if key_builder is not None else create_key_builder(self.config.cache)
        self._resolver = ValueResolver(self.cache, self.key_builder, self.config, self._project_value)

    # ── Public API ───────────────────────────────────────────────────────

    def project(
        self,
        obj: Any,
        projector: ProjectorArg = None,
        options: Optional[Mapping[str, Any]] = None,
        **option_kwargs: Any,
    ) -> ProjectionResult:
        """
        Project ``obj`` and collect top-level warnings.

        ``projector`` overrides registry dispatch. Options may be passed as
        a mapping, as keyword arguments, or both (keywords win).

        Raises:
            InvalidField: a selected field has no accessor.
            InvalidAssociation: an unknown association was requested while
                ``validate_associations`` is on.
        """
        raw = self._raw_options(options, option_kwargs)
        if is_collection(obj):
            obj = materialize(obj)

        dispatched = None if obj is None else self._dispatch(obj, projector)
        warnings = self._collect_warnings(obj, dispatched, raw)
        if dispatched is None:
            data = self._project_value(obj, raw)
            schema_key = None
        else:
            resolved = resolve_options(dispatched.schema, raw, self.config)
            data = self._project_dispatched(dispatched, obj, resolved)
            schema_key = dispatched.schema.key_for(dispatched.many)

        root_key = merge_raw(raw).get("key", UNSET)
        if root_key is UNSET:
            root_key = schema_key
        if root_key is not None:
            data = {str(root_key): data}

        return ProjectionResult(data=data, warnings=warnings)

    def serialize(
        self,
        obj: Any,
        projector: ProjectorArg = None,
        options: Optional[Mapping[str, Any]] = None,
        **option_kwargs: Any,
    ) -> Any:
        """Project ``obj`` and return only the payload."""
        return self.project(obj, projector, options, **option_kwargs).data

    def warnings(
        self,
        obj: Any,
        projector: ProjectorArg = None,
        options: Optional[Mapping[str, Any]] = None,
        **option_kwargs: Any,
    ) -> List[ProjectionWarning]:
        """Warnings the request would produce, without projecting any values."""
        raw = self._raw_options(options, option_kwargs)
        if is_collection(obj):
            obj = materialize(obj)
        dispatched = None if obj is None else self._dispatch(obj, projector)
        return self._collect_warnings(obj, dispatched, raw)

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _raw_options(options: Optional[Mapping[str, Any]], extra: Mapping[str, Any]) -> Dict[str, Any]:
        raw: Dict[str, Any] = dict(options) if options else {}
        raw.update(extra)
        return raw

    def _dispatch(self, obj: Any, projector: ProjectorArg) -> Optional[Dispatched]:
        if projector is None:
            return self.registry.projector_for(obj)
        if isinstance(projector, CollectionProjector):
            return projector
        if projector.schema is None:
            raise SchemaFault(projector.__name__, "projector declares no Meta")
        if is_collection(obj):
            return CollectionProjector(projector)
        return projector

    def _collect_warnings(self, obj: Any, dispatched: Optional[Dispatched], raw: Mapping[str, Any]) -> List[ProjectionWarning]:
        """Top-level warnings; a mixed collection reports once per element projector."""
        if dispatched is not None:
            schemas = [dispatched.schema]
        elif is_collection(obj):
            schemas = []
            for item in obj:
                child = None if item is None else self.registry.lookup(item)
                if child is not None and child.schema is not None and all(child.schema is not s for s in schemas):
                    schemas.append(child.schema)
        else:
            return []

        warnings: List[ProjectionWarning] = []
        seen = set()
        for schema in schemas:
            resolved = resolve_options(schema, raw, self.config)
            for warning in collect_warnings(schema, resolved, self.config):
                if str(warning) not in seen:
                    seen.add(str(warning))
                    warnings.append(warning)
        return warnings

    def _project_dispatched(self, dispatched: Dispatched, obj: Any, options: RequestOptions) -> Any:
        check_associations(dispatched.schema, options, self.config)
        if dispatched.many:
            return [
                None if item is None else self._project_object(dispatched.child, item, options)
                for item in obj
            ]
        return self._project_object(dispatched, obj, options)

    def _project_object(self, projector_cls: Type[Projector], obj: Any, options: RequestOptions) -> Dict[str, Any]:
        projector = projector_cls(obj, options)
        out: Dict[str, Any] = {}
        for name in select_fields(projector_cls.schema, options):
            value = self._resolver.resolve(projector, name)
            if value is not OMITTED:
                out[name] = value
        return out

    def _project_value(self, value: Any, raw: Mapping[str, Any], _active: Optional[Set[int]] = None) -> Any:
        """Recursion target for association values and unschematized top-level values."""
        if value is None:
            return None
        if is_collection(value):
            value = materialize(value)

        dispatched = self.registry.projector_for(value)
        if dispatched is not None:
            options = resolve_options(dispatched.schema, raw, self.config)
            return self._project_dispatched(dispatched, value, options)

        if is_collection(value):
            return self._project_items(value, raw, _active)
        logger.debug("No projector for %s; structural projection", type(value).__name__)
        return to_primitive(value)

    def _project_items(self, items: Any, raw: Mapping[str, Any], _active: Optional[Set[int]]) -> Any:
        """
        Collection whose elements do not share one projector.

        Each element goes through its own projector; elements without one
        (None, primitives) are reduced structurally.
        """
        if not any(self._is_projectable(item) for item in items):
            return to_primitive(items)

        active = _active if _active is not None else set()
        marker = id(items)
        if marker in active:
            raise ProjectionFault(
                code="CIRCULAR_REFERENCE",
                message=f"Circular reference while projecting {type(items).__name__}",
                metadata={"type": type(items).__name__},
            )
        active.add(marker)
        try:
            return [self._project_value(item, raw, active) for item in items]
        finally:
            active.discard(marker)

    def _is_projectable(self, item: Any) -> bool:
        if item is None:
            return False
        return is_collection(item) or self.registry.lookup(item) is not None

    def __repr__(self) -> str:
        return f"<ProjectionEngine cache={self.cache.name} registry={self.registry!r}>"


# ============================================================================
# Default engine
# ============================================================================

_default_engine: Optional[ProjectionEngine] = None
_default_lock = threading.Lock()


def get_default_engine() -> ProjectionEngine:
    """Process-wide engine, created on first use."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = ProjectionEngine()
        return _default_engine


def configure(
    config: Optional[EngineConfig] = None,
    *,
    registry: Optional[ProjectorRegistry] = None,
    cache: Optional[CacheBackend] = None,
) -> ProjectionEngine:
    """Replace the process-wide engine. Call once at startup."""
    global _default_engine
    engine = ProjectionEngine(config, registry=registry, cache=cache)
    with _default_lock:
        _default_engine = engine
    return engine


def serialize(
    obj: Any,
    projector: ProjectorArg = None,
    options: Optional[Mapping[str, Any]] = None,
    **option_kwargs: Any,
) -> Any:
    """Project ``obj`` through the process-wide engine."""
    return get_default_engine().serialize(obj, projector, options, **option_kwargs)


def project(
    obj: Any,
    projector: ProjectorArg = None,
    options: Optional[Mapping[str, Any]] = None,
    **option_kwargs: Any,
) -> ProjectionResult:
    """Project ``obj`` through the process-wide engine, keeping warnings."""
    return get_default_engine().project(obj, projector, options, **option_kwargs)
