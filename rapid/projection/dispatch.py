"""
Rapid Serializer Dispatch — which projector applies to a value.

Projectors register against model types (and, for plain mapping
documents, against a kind string). Lookup walks the value's MRO, so a
subclass of a registered model is projected by its parent's projector
unless it registers its own.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Type, Union

from .structural import is_collection

if TYPE_CHECKING:
    from .projector import Projector
    from .schema import Schema

logger = logging.getLogger("rapid.projection.dispatch")


class CollectionProjector:
    """
    Collection schema wrapper.

    Every element goes through the same child projector with the same
    options; None elements stay None. Collections whose elements do not
    share a projector are projected element by element by the engine.
    """

    many = True

    def __init__(self, child: Type["Projector"]):
        self.child = child

    @property
    def schema(self) -> "Schema":
        return self.child.schema

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, CollectionProjector) and other.child is self.child

    def __hash__(self) -> int:
        return hash((CollectionProjector, self.child))

    def __repr__(self) -> str:
        return f"CollectionProjector(child={self.child.__name__})"


Dispatched = Union[Type["Projector"], CollectionProjector]


class ProjectorRegistry:
    """
    Registry mapping model types (and document kinds) to projectors.

    Registration normally happens at import time through ``Meta.model``;
    lookups are read-only and safe to share between threads.
    """

    def __init__(self, type_key: str = "type"):
        self.type_key = type_key
        self._by_type: Dict[type, Type["Projector"]] = {}
        self._by_kind: Dict[str, Type["Projector"]] = {}
        self._lock = threading.Lock()

    # ── Registration ─────────────────────────────────────────────────────

    def register(self, model: type, projector: Type["Projector"]) -> None:
        with self._lock:
            previous = self._by_type.get(model)
            self._by_type[model] = projector
        if previous is not None and previous is not projector:
            logger.debug(
                "Projector for %s replaced: %s -> %s",
                model.__name__, previous.__name__, projector.__name__,
            )

    def register_kind(self, kind: str, projector: Type["Projector"]) -> None:
        """Register a projector for mapping documents tagged ``{type_key: kind}``."""
        with self._lock:
            self._by_kind[kind] = projector

    def unregister(self, model: type) -> bool:
        with self._lock:
            return self._by_type.pop(model, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._by_type.clear()
            self._by_kind.clear()

    # ── Lookup ───────────────────────────────────────────────────────────

    def lookup(self, value: Any) -> Optional[Type["Projector"]]:
        """Projector for a single value, or None."""
        if isinstance(value, Mapping):
            kind = value.get(self.type_key)
            if isinstance(kind, str) and kind in self._by_kind:
                return self._by_kind[kind]

        for klass in type(value).__mro__:
            projector = self._by_type.get(klass)
            if projector is not None:
                return projector

        return getattr(type(value), "__projector__", None)

    def for_kind(self, kind: str) -> Optional[Type["Projector"]]:
        return self._by_kind.get(kind)

    def projector_for(self, value: Any) -> Optional[Dispatched]:
        """
        Projector for a single value, or a ``CollectionProjector`` when
        ``value`` is a non-empty collection whose elements all share one.

        Iterators are consumed; materialize them first.
        """
        single = self.lookup(value)
        if single is not None:
            return single

        if not is_collection(value):
            return None

        children = {self.lookup(item) for item in value}
        if len(children) == 1:
            child = children.pop()
            if child is not None:
                return CollectionProjector(child)
        return None

    def projectors(self) -> List[Type["Projector"]]:
        """All registered projectors (types first, then kinds)."""
        seen: Dict[Type["Projector"], None] = {}
        for projector in list(self._by_type.values()) + list(self._by_kind.values()):
            seen.setdefault(projector, None)
        return list(seen)

    def __contains__(self, model: Any) -> bool:
        if isinstance(model, str):
            return model in self._by_kind
        return model in self._by_type

    def __len__(self) -> int:
        return len(self._by_type) + len(self._by_kind)

    def __repr__(self) -> str:
        return f"<ProjectorRegistry types={len(self._by_type)} kinds={len(self._by_kind)}>"


def materialize(value: Iterable[Any]) -> Any:
    """Turn one-shot iterables into lists; leave sized containers alone."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return value
    return list(value)


default_registry = ProjectorRegistry()
