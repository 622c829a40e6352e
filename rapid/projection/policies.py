"""
Rapid request policies — association validation and optional-field warnings.

Both are switched by ``EngineConfig``. Validation runs once per level,
before any value is resolved at that level, so a bad request never
yields a half-built payload. Warnings are advisory and only collected
for the top level.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from .exceptions import InvalidAssociation, ProjectionWarning
from .options import RequestOptions
from .schema import Schema

if TYPE_CHECKING:
    from ..config import EngineConfig

logger = logging.getLogger("rapid.projection.policies")


def check_associations(
    schema: Schema,
    options: RequestOptions,
    config: Optional["EngineConfig"] = None,
) -> None:
    """
    Raise ``InvalidAssociation`` naming every unknown requested association.

    With validation disabled, unknown names are ignored here and simply
    never selected.
    """
    unknown = [name for name in options.associations if name not in schema.associations]
    if not unknown:
        return

    if config is None or not config.validate_associations:
        logger.debug("Dropping unknown associations %s for %s", unknown, schema.name)
        return

    raise InvalidAssociation(unknown, schema=schema.name)


def collect_warnings(
    schema: Schema,
    options: RequestOptions,
    config: Optional["EngineConfig"] = None,
) -> List[ProjectionWarning]:
    """One warning per requested optional field the schema does not declare."""
    if config is None or not config.warn_invalid_fields:
        return []

    return [
        ProjectionWarning.invalid_optional_field(name)
        for name in options.extra_fields
        if name not in schema.optional
    ]
