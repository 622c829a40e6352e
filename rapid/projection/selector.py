"""
Rapid Field Selector — the ordered list of keys one level will emit.

Pure and deterministic: the same schema and options always give the
same tuple. Order is base attributes (filtered), then requested optional
fields, then requested associations, each in declaration order.
"""

from __future__ import annotations

from typing import Tuple

from .options import RequestOptions
from .schema import Schema


def select_fields(schema: Schema, options: RequestOptions) -> Tuple[str, ...]:
    """
    Compute the field selection for one projection level.

    ``only`` narrows base attributes and silently drops unknown names;
    ``except`` applies only when ``only`` is empty. Optional fields and
    associations are never narrowed by ``only`` here; the option resolver
    has already folded any named in it into the requested sets.
    """
    if options.only:
        wanted = set(options.only)
        selected = [name for name in schema.attributes if name in wanted]
    elif options.exclude:
        unwanted = set(options.exclude)
        selected = [name for name in schema.attributes if name not in unwanted]
    else:
        selected = list(schema.attributes)

    extra = set(options.extra_fields)
    selected.extend(name for name in schema.optional if name in extra)

    requested = set(options.associations)
    selected.extend(name for name in schema.associations if name in requested)

    return tuple(dict.fromkeys(selected))
