"""
Rapid Option Resolver — turns loose request options into typed sets.

Raw options arrive as a plain mapping: explicit keyword options from the
caller plus an inbound request-parameter bag under ``params``. Field
lists may be sequences or comma-joined strings. Resolution never fails;
anything that cannot be read as a list of names becomes an empty list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from ..config import EngineConfig
    from .schema import Schema


class _Unset:
    """Marker for options the caller did not supply."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

_ALIASES = {
    "fields": "only",
    "exclude": "except",
    "extraFields": "extra_fields",
    "currentUser": "current_user",
}

_LIST_SUFFIXES = ("_fields", "_associations")
_SUB_KEYS = ("fields", "associations", "extra_fields")

# Keys a request-parameter bag may never set
_PROTECTED = ("current_user", "key")


def is_list_key(key: str) -> bool:
    """Keys whose values are field-name lists (merged rather than replaced)."""
    return key in ("only", "except", "extra_fields", "associations") or key.endswith(_LIST_SUFFIXES)


def split_names(value: Any) -> Tuple[str, ...]:
    """
    Normalize a field list to a de-duplicated tuple of names.

    Accepts ``"a,b"``, ``["a", "b,c"]`` and other iterables of strings.
    Values of any other shape (numbers, mappings, None) yield ``()``.
    """
    if isinstance(value, str):
        items: Iterable[Any] = (value,)
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        return ()

    seen: Dict[str, None] = {}
    for item in items:
        if isinstance(item, str):
            parts = item.split(",")
        elif item is None or isinstance(item, (Mapping, list, tuple, set)):
            continue
        else:
            parts = [str(item)]
        for part in parts:
            part = part.strip()
            if part:
                seen.setdefault(part, None)
    return tuple(seen)


def union(*groups: Iterable[str]) -> Tuple[str, ...]:
    """Order-preserving union of name groups."""
    seen: Dict[str, None] = {}
    for group in groups:
        for name in group:
            seen.setdefault(name, None)
    return tuple(seen)


def merge_raw(raw: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Flatten explicit options and the ``params`` bag into one mapping.

    Aliases are folded into canonical keys, list values are unioned
    (explicit options first) and ``params`` overrides scalar values. The
    principal and wrapping key can only come from explicit options.
    """
    if not raw:
        return {}
    if not isinstance(raw, Mapping):
        return {}

    explicit = dict(raw)
    params = explicit.pop("params", None)
    if not isinstance(params, Mapping):
        params = {}

    merged: Dict[str, Any] = {}
    for source, trusted in ((explicit, True), (params, False)):
        for key, value in source.items():
            key = _ALIASES.get(str(key), str(key))
            if not trusted and key in _PROTECTED:
                continue
            if is_list_key(key):
                merged[key] = union(merged.get(key, ()), split_names(value))
            else:
                merged[key] = value
    return merged


# ============================================================================
# Resolved options
# ============================================================================

@dataclass(frozen=True)
class SubOptions:
    """Per-association overrides lifted from ``<assoc>_*`` keys."""
    fields: Tuple[str, ...] = ()
    associations: Tuple[str, ...] = ()
    extra_fields: Tuple[str, ...] = ()
    nested: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_raw(self) -> Dict[str, Any]:
        raw: Dict[str, Any] = dict(self.nested)
        if self.fields:
            raw["only"] = self.fields
        if self.associations:
            raw["associations"] = self.associations
        if self.extra_fields:
            raw["extra_fields"] = self.extra_fields
        return raw


@dataclass(frozen=True)
class RequestOptions:
    """
    Typed options for one projection level.

    ``associations`` is the final requested set: explicit requests, names
    implied by ``only`` and (unless suppressed) the schema's defaults.
    """
    only: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    extra_fields: Tuple[str, ...] = ()
    associations: Tuple[str, ...] = ()
    sub_options: Mapping[str, SubOptions] = field(default_factory=lambda: MappingProxyType({}))
    current_user: Any = None
    key: Any = UNSET

    def child_raw(self, association: str) -> Dict[str, Any]:
        """
        Raw options for recursing into ``association``.

        Only the association's own sub-options and the principal carry over.
        """
        sub = self.sub_options.get(association)
        raw = sub.to_raw() if sub is not None else {}
        raw["current_user"] = self.current_user
        return raw


def resolve_options(
    schema: "Schema",
    raw: Optional[Mapping[str, Any]] = None,
    config: Optional["EngineConfig"] = None,
) -> RequestOptions:
    """
    Resolve raw options against ``schema``.

    - names in ``only`` that are associations or optional fields are
      also requested as such
    - default associations are added unless ``only`` is active and the
      config says they should yield to it
    - ``<assoc>_fields`` / ``<assoc>_associations`` / ``<assoc>_extra_fields``
      become that association's sub-options; deeper ``<assoc>_<rest>`` list
      keys are lifted as ``<rest>`` for the next level down
    """
    merged = merge_raw(raw)

    only = split_names(merged.get("only"))
    exclude = split_names(merged.get("except"))
    extra_fields = split_names(merged.get("extra_fields"))
    associations = split_names(merged.get("associations"))

    if only:
        associations = union(associations, (n for n in only if n in schema.associations))
        extra_fields = union(extra_fields, (n for n in only if n in schema.optional))

    keep_defaults = not only or (config is None or config.default_associations_with_only)
    if schema.default_associations and keep_defaults:
        associations = union(associations, schema.default_associations)

    sub_options: Dict[str, SubOptions] = {}
    for association in schema.associations:
        sub = _lift_sub_options(merged, association)
        if sub is not None:
            sub_options[association] = sub

    return RequestOptions(
        only=only,
        exclude=exclude,
        extra_fields=extra_fields,
        associations=associations,
        sub_options=MappingProxyType(sub_options),
        current_user=merged.get("current_user"),
        key=merged.get("key", UNSET),
    )


def _lift_sub_options(merged: Mapping[str, Any], association: str) -> Optional[SubOptions]:
    prefix = f"{association}_"
    own = {name: split_names(merged.get(prefix + name)) for name in _SUB_KEYS}

    nested: Dict[str, Any] = {}
    for key, value in merged.items():
        if not key.startswith(prefix):
            continue
        rest = key[len(prefix):]
        if rest in _SUB_KEYS or not is_list_key(rest):
            continue
        names = split_names(value)
        if names:
            nested[rest] = names

    if not any(own.values()) and not nested:
        return None

    return SubOptions(
        fields=own["fields"],
        associations=own["associations"],
        extra_fields=own["extra_fields"],
        nested=MappingProxyType(nested),
    )
