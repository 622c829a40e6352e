"""
Rapid Schema — immutable per-type projection rules.

A ``Schema`` is compiled once, when a ``Projector`` class is created,
and never mutated afterwards. It answers three questions for the rest
of the engine: which fields exist, how each is gated (permission
predicate), and whether its value may be served from the field cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from .exceptions import SchemaFault

PermissionPredicate = Callable[[Any, Any, Any], bool]
"""``(object, principal, value) -> bool``; anything but ``True`` hides the field."""

ALL_FIELDS = "__all__"

# Group tokens accepted by ``Meta.caches``
CACHE_GROUPS = ("all", "fields", "optional_fields", "associations")


def names(value: Any) -> Tuple[str, ...]:
    """Normalize a declaration (name or iterable of names) to a de-duplicated tuple."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = (value,)
    seen: dict[str, None] = {}
    for item in value:
        seen.setdefault(str(item), None)
    return tuple(seen)


@dataclass(frozen=True)
class RootKey:
    """
    Wrapping key for top-level payloads.

    ``single`` wraps one object, ``multiple`` wraps a collection.
    """
    single: Optional[str] = None
    multiple: Optional[str] = None

    @classmethod
    def parse(cls, value: Any) -> Optional["RootKey"]:
        if value is None or isinstance(value, RootKey):
            return value
        if isinstance(value, str):
            return cls(single=value, multiple=value)
        if isinstance(value, Mapping):
            return cls(single=value.get("single"), multiple=value.get("multiple"))
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(single=value[0], multiple=value[1])
        raise TypeError(f"Cannot interpret root key declaration {value!r}")

    def for_many(self, many: bool) -> Optional[str]:
        return self.multiple if many else self.single


@dataclass(frozen=True)
class Schema:
    """
    Declarative rule set for one serializable type.

    Invariants (checked on construction):
        - attributes, optional and associations are pairwise disjoint
        - default_associations is a subset of associations
        - permissions and cacheable only name declared fields
    """
    name: str
    attributes: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    associations: Tuple[str, ...] = ()
    default_associations: Tuple[str, ...] = ()
    permissions: Mapping[str, PermissionPredicate] = field(
        default_factory=lambda: MappingProxyType({})
    )
    cacheable: frozenset = frozenset()
    key: Optional[RootKey] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", names(self.attributes))
        object.__setattr__(self, "optional", names(self.optional))
        object.__setattr__(self, "associations", names(self.associations))
        object.__setattr__(self, "default_associations", names(self.default_associations))
        object.__setattr__(self, "permissions", MappingProxyType(dict(self.permissions)))
        object.__setattr__(self, "cacheable", frozenset(self.cacheable))
        object.__setattr__(self, "key", RootKey.parse(self.key))
        self._validate()

    def _validate(self) -> None:
        groups = (
            ("attribute", self.attributes),
            ("optional field", self.optional),
            ("association", self.associations),
        )
        owner: dict[str, str] = {}
        for kind, group in groups:
            for name in group:
                if name in owner:
                    raise SchemaFault(
                        self.name,
                        f"'{name}' is declared as both {owner[name]} and {kind}",
                    )
                owner[name] = kind

        stray = [n for n in self.default_associations if n not in self.associations]
        if stray:
            raise SchemaFault(
                self.name,
                f"default associations {stray} are not declared associations",
            )

        unknown = [n for n in self.permissions if n not in owner]
        if unknown:
            raise SchemaFault(self.name, f"permissions reference unknown fields {unknown}")

        unknown = sorted(n for n in self.cacheable if n not in owner)
        if unknown:
            raise SchemaFault(self.name, f"caches reference unknown fields {unknown}")

        for name, predicate in self.permissions.items():
            if not callable(predicate):
                raise SchemaFault(self.name, f"permission for '{name}' is not callable")

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def build(
        cls,
        name: str,
        *,
        attributes: Iterable[str] = (),
        optional: Iterable[str] = (),
        associations: Iterable[str] = (),
        default_associations: Iterable[str] = (),
        permissions: Optional[Mapping[Any, PermissionPredicate]] = None,
        caches: Iterable[str] = (),
        key: Any = None,
    ) -> "Schema":
        """
        Build a schema from loose declarations.

        ``permissions`` keys may be a field name or a tuple of names sharing
        one predicate. ``caches`` may mix field names with the group tokens
        ``all``, ``fields``, ``optional_fields`` and ``associations``.
        """
        attributes = names(attributes)
        optional = names(optional)
        associations = names(associations)
        return cls(
            name=name,
            attributes=attributes,
            optional=optional,
            associations=associations,
            default_associations=names(default_associations),
            permissions=expand_permissions(permissions or {}),
            cacheable=expand_caches(caches, attributes, optional, associations),
            key=key,
        )

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def fields(self) -> Tuple[str, ...]:
        """Every declared field, in output order."""
        return self.attributes + self.optional + self.associations

    def is_association(self, name: str) -> bool:
        return name in self.associations

    def is_cacheable(self, name: str) -> bool:
        return name in self.cacheable

    def permission_for(self, name: str) -> Optional[PermissionPredicate]:
        return self.permissions.get(name)

    def key_for(self, many: bool) -> Optional[str]:
        if self.key is None:
            return None
        return self.key.for_many(many)

    def __repr__(self) -> str:
        return (
            f"<Schema {self.name} attributes={list(self.attributes)} "
            f"optional={list(self.optional)} associations={list(self.associations)}>"
        )


def expand_permissions(permissions: Mapping[Any, PermissionPredicate]) -> dict[str, PermissionPredicate]:
    """Flatten ``{("a", "b"): pred}`` into ``{"a": pred, "b": pred}``."""
    expanded: dict[str, PermissionPredicate] = {}
    for fields_, predicate in permissions.items():
        for name in names(fields_):
            expanded[name] = predicate
    return expanded


def expand_caches(
    caches: Iterable[str],
    attributes: Tuple[str, ...],
    optional: Tuple[str, ...],
    associations: Tuple[str, ...],
) -> frozenset:
    """Resolve cache group tokens against the declared field groups."""
    result: set[str] = set()
    for token in names(caches):
        if token in ("all", ALL_FIELDS):
            result.update(attributes + optional + associations)
        elif token == "fields":
            result.update(attributes)
        elif token == "optional_fields":
            result.update(optional)
        elif token == "associations":
            result.update(associations)
        else:
            result.add(token)
    return frozenset(result)
