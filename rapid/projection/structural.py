"""
Rapid structural projection — plain-data shape of arbitrary values.

Used wherever no schema applies: unregistered association targets,
attribute values that are objects rather than primitives, and
top-level values passed to the engine without a projector.
"""

from __future__ import annotations

import dataclasses
import datetime
import decimal
import enum
import uuid
from collections.abc import Mapping
from typing import Any, Optional, Set

from .exceptions import ProjectionFault

PRIMITIVES = (str, int, float, bool, type(None))


def is_collection(value: Any) -> bool:
    """
    Whether ``value`` should be projected element-wise.

    Strings, bytes, mappings and classes are never collections here.
    """
    if isinstance(value, (str, bytes, bytearray, Mapping, type)):
        return False
    if isinstance(value, (list, tuple, set, frozenset)):
        return True
    if dataclasses.is_dataclass(value):
        return False
    return hasattr(value, "__iter__")


def to_primitive(value: Any, _active: Optional[Set[int]] = None) -> Any:
    """
    Convert ``value`` to JSON-compatible data.

    - primitives pass through
    - enums project their value, temporal values become ISO strings,
      ``Decimal`` and ``UUID`` become strings
    - mappings, collections and dataclasses recurse
    - objects exposing ``to_dict()`` or ``model_dump()`` are projected
      through that shape; other objects through their public attributes
    """
    if isinstance(value, PRIMITIVES):
        return value

    if isinstance(value, enum.Enum):
        return to_primitive(value.value, _active)

    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()

    if isinstance(value, datetime.timedelta):
        return value.total_seconds()

    if isinstance(value, (decimal.Decimal, uuid.UUID)):
        return str(value)

    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")

    active = _active if _active is not None else set()
    marker = id(value)
    if marker in active:
        raise ProjectionFault(
            code="CIRCULAR_REFERENCE",
            message=f"Circular reference while projecting {type(value).__name__}",
            metadata={"type": type(value).__name__},
        )
    active.add(marker)
    try:
        return _project_container(value, active)
    finally:
        active.discard(marker)


def _project_container(value: Any, active: Set[int]) -> Any:
    if isinstance(value, Mapping):
        return {str(k): to_primitive(v, active) for k, v in value.items()}

    if isinstance(value, (set, frozenset)):
        items = [to_primitive(v, active) for v in value]
        try:
            return sorted(items)
        except TypeError:
            return items

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_primitive(getattr(value, f.name), active)
            for f in dataclasses.fields(value)
        }

    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_primitive(to_dict(), active)

    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return to_primitive(model_dump(mode="json"), active)

    if is_collection(value):
        return [to_primitive(v, active) for v in value]

    attrs = getattr(value, "__dict__", None)
    if attrs is not None:
        return {
            k: to_primitive(v, active)
            for k, v in attrs.items()
            if not k.startswith("_")
        }

    return str(value)
