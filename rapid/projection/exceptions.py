"""
Rapid Projection Exceptions — Fault-domain integrated error types.

``InvalidField`` signals a broken projector declaration and is never
recovered inside the engine. ``InvalidAssociation`` is a client error
raised only when association validation is switched on. Warnings are
plain values; they never interrupt a projection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from ..faults.core import Fault, FaultDomain, Severity


def to_sentence(words: Sequence[str]) -> str:
    """Join words as an English list: ``a``, ``a and b``, ``a, b, and c``."""
    words = list(words)
    if not words:
        return ""
    if len(words) == 1:
        return words[0]
    if len(words) == 2:
        return f"{words[0]} and {words[1]}"
    return f"{', '.join(words[:-1])}, and {words[-1]}"


# ============================================================================
# Fault Classes
# ============================================================================

class ProjectionFault(Fault):
    """
    Base fault for all projection errors.

    Raised for structural problems that are not tied to a single field,
    e.g. circular object graphs during generic projection.
    """

    def __init__(
        self,
        code: str = "PROJECTION_ERROR",
        message: str = "Projection failed",
        *,
        severity: Severity = Severity.ERROR,
        public: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.PROJECTION,
            severity=severity,
            retryable=False,
            public=public,
            metadata=metadata,
        )


class InvalidField(ProjectionFault):
    """
    A selected field has no accessor on the projector or the object.

    Indicates a projector/implementation bug, not a bad request.
    """

    def __init__(self, field_name: str, owner: Any = None):
        self.field_name = field_name
        owner_name = type(owner).__name__ if owner is not None else None
        message = f"{field_name} could not be found"
        if owner_name:
            message = f"{field_name} could not be found on {owner_name}"
        super().__init__(
            code="INVALID_FIELD",
            message=message,
            metadata={"field": field_name, "owner": owner_name},
        )


class InvalidAssociation(ProjectionFault):
    """
    The caller requested associations the schema does not declare.

    Every offending name is reported in one message.
    """

    def __init__(self, associations: Sequence[str], schema: Optional[str] = None):
        self.associations = tuple(associations)
        quoted = [f"'{name}'" for name in self.associations]
        if len(quoted) == 1:
            message = f"The {quoted[0]} association does not exist."
        else:
            message = f"The {to_sentence(quoted)} associations do not exist."
        super().__init__(
            code="INVALID_ASSOCIATION",
            message=message,
            severity=Severity.WARN,
            public=True,
            metadata={"associations": list(self.associations), "schema": schema},
        )


class SchemaFault(ProjectionFault):
    """A projector declaration breaks a schema invariant."""

    def __init__(self, schema: str, reason: str):
        self.schema = schema
        self.reason = reason
        super().__init__(
            code="INVALID_SCHEMA",
            message=f"Schema '{schema}' is invalid: {reason}",
            severity=Severity.FATAL,
            metadata={"schema": schema, "reason": reason},
        )


# ============================================================================
# Warnings
# ============================================================================

@dataclass(frozen=True)
class ProjectionWarning:
    """Advisory notice about a request; never raised."""
    field: str
    message: str

    def __str__(self) -> str:
        return self.message

    @classmethod
    def invalid_optional_field(cls, name: str) -> "ProjectionWarning":
        return cls(field=name, message=f"The '{name}' field is not a valid optional field")
