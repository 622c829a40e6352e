"""
Rapid Projection — declarative, permission-aware object projection.

Provides:
- Projector: Base class declaring a per-type Schema through ``Meta``
- verify_permissions: Field-level permission predicates
- ProjectorRegistry: Type / document-kind to projector dispatch
- resolve_options / select_fields: Option Resolver and Field Selector
- ValueResolver: Field reads with override hooks, permissions and caching
- Faults: InvalidField, InvalidAssociation, SchemaFault

Usage::

    from rapid.projection import Projector, verify_permissions

    class PostProjector(Projector):
        class Meta:
            model = Post
            attributes = ("id", "title", "blurb")
            optional = ("joke",)
            caches = ("fields",)
"""

from .schema import (
    ALL_FIELDS,
    PermissionPredicate,
    RootKey,
    Schema,
)

from .projector import (
    Projector,
    ProjectorMeta,
    verify_permissions,
)

from .dispatch import (
    CollectionProjector,
    ProjectorRegistry,
    default_registry,
)

from .options import (
    UNSET,
    RequestOptions,
    SubOptions,
    resolve_options,
    split_names,
)

from .selector import select_fields

from .policies import (
    check_associations,
    collect_warnings,
)

from .resolver import (
    OMITTED,
    ValueResolver,
)

from .structural import (
    is_collection,
    to_primitive,
)

from .documents import (
    build_registry,
    load_document,
    load_registry,
)

from .exceptions import (
    ProjectionFault,
    InvalidField,
    InvalidAssociation,
    SchemaFault,
    ProjectionWarning,
)

__all__ = [
    # Schema
    "ALL_FIELDS",
    "PermissionPredicate",
    "RootKey",
    "Schema",
    # Projectors
    "Projector",
    "ProjectorMeta",
    "verify_permissions",
    # Dispatch
    "CollectionProjector",
    "ProjectorRegistry",
    "default_registry",
    # Options
    "UNSET",
    "RequestOptions",
    "SubOptions",
    "resolve_options",
    "split_names",
    # Pipeline
    "select_fields",
    "check_associations",
    "collect_warnings",
    "OMITTED",
    "ValueResolver",
    "is_collection",
    "to_primitive",
    # Documents
    "build_registry",
    "load_document",
    "load_registry",
    # Faults
    "ProjectionFault",
    "InvalidField",
    "InvalidAssociation",
    "SchemaFault",
    "ProjectionWarning",
]
