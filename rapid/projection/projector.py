"""
Rapid Projector — declarative per-type projection rules.

Architecture:
    ProjectorMeta (metaclass)
    └── Projector (base)
        └── user projectors (one per model type)

The metaclass compiles each projector's ``Meta`` into an immutable
``Schema`` and registers the projector for its model type. At runtime a
projector instance wraps one object for one level of a projection; its
public methods and properties are override hooks consulted before the
object's own attributes.

Usage::

    class UserProjector(Projector):
        class Meta:
            model = User
            attributes = ("id", "name")
            optional = ("email",)
            associations = ("profile", "posts")
            default_associations = ("profile",)
            caches = ("fields",)
            key = {"single": "user", "multiple": "users"}

        @verify_permissions("email")
        def owner_only(user, principal, value):
            return principal is not None and principal.id == user.id

        def name(self):
            return self.object.name.title()
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Tuple

from .dispatch import ProjectorRegistry, default_registry
from .exceptions import SchemaFault
from .options import RequestOptions
from .schema import (
    ALL_FIELDS,
    PermissionPredicate,
    Schema,
    expand_caches,
    expand_permissions,
    names,
)

logger = logging.getLogger("rapid.projection.projector")

_PERMISSION_ATTR = "_rapid_permission_fields"


def verify_permissions(*fields: str):
    """
    Gate ``fields`` behind the decorated predicate.

    The predicate is a plain function ``(object, principal, value) -> bool``
    written in the projector body; it is removed from the class and never
    treated as an override hook. Only an exact ``True`` shows the field.
    """
    if not fields:
        raise TypeError("verify_permissions() needs at least one field name")

    def decorator(func):
        setattr(func, _PERMISSION_ATTR, names(fields))
        return func

    return decorator


# ============================================================================
# Metaclass
# ============================================================================

class ProjectorMeta(type):
    """
    Metaclass for Projector classes.

    Collects ``Meta`` declarations and ``@verify_permissions`` predicates,
    records override hooks, compiles the ``Schema`` and registers the
    projector for ``Meta.model`` / ``Meta.kind``.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ) -> "ProjectorMeta":
        is_root = not any(isinstance(base, ProjectorMeta) for base in bases)

        permission_funcs: Dict[str, PermissionPredicate] = {}
        for key, value in list(namespace.items()):
            target = value.__func__ if isinstance(value, staticmethod) else value
            gated = getattr(target, _PERMISSION_ATTR, None)
            if gated:
                namespace.pop(key)
                for field_name in gated:
                    permission_funcs[field_name] = target

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if is_root:
            return cls

        hooks = set()
        for base in bases:
            hooks.update(getattr(base, "_hooks", ()))
        for key, value in namespace.items():
            if key.startswith("_") or key == "Meta":
                continue
            if inspect.isfunction(value) or isinstance(value, property):
                hooks.add(key)
        cls._hooks = frozenset(hooks)

        meta = namespace.get("Meta")
        parent = next(
            (base.schema for base in bases if getattr(base, "schema", None) is not None),
            None,
        )
        if meta is None and parent is None and not permission_funcs:
            # abstract intermediate projector
            return cls

        cls.schema = mcs._compile(cls, meta, parent, permission_funcs)

        if meta is not None:
            # an empty registry is falsy (len 0)
            registry: Optional[ProjectorRegistry] = getattr(meta, "registry", None)
            if registry is None:
                registry = default_registry
            model = getattr(meta, "model", None)
            if model is not None:
                registry.register(model, cls)
            kind = getattr(meta, "kind", None)
            if kind is not None:
                registry.register_kind(kind, cls)

        logger.debug("Compiled %r for %s", cls.schema, name)
        return cls

    @staticmethod
    def _compile(
        cls: type,
        meta: Optional[type],
        parent: Optional[Schema],
        permission_funcs: Dict[str, PermissionPredicate],
    ) -> Schema:
        def declared(attr: str, fallback: Any) -> Any:
            if meta is not None and hasattr(meta, attr):
                return getattr(meta, attr)
            return fallback

        model = declared("model", None)
        schema_name = declared("name", None) or (model.__name__ if model is not None else cls.__name__)

        optional = names(declared("optional", parent.optional if parent else ()))
        associations = names(declared("associations", parent.associations if parent else ()))
        default_associations = names(
            declared("default_associations", parent.default_associations if parent else ())
        )

        attributes = declared("attributes", parent.attributes if parent else ALL_FIELDS)
        if attributes == ALL_FIELDS:
            attributes = _model_attributes(schema_name, model, exclude=optional + associations)
        attributes = names(attributes)

        permissions: Dict[str, PermissionPredicate] = dict(parent.permissions) if parent else {}
        permissions.update(expand_permissions(declared("permissions", {}) or {}))
        permissions.update(permission_funcs)

        caches = declared("caches", None)
        if caches is not None:
            cacheable = expand_caches(caches, attributes, optional, associations)
        elif parent is not None:
            known = set(attributes + optional + associations)
            cacheable = frozenset(n for n in parent.cacheable if n in known)
        else:
            cacheable = frozenset()

        key = declared("key", parent.key if parent else None)

        return Schema(
            name=schema_name,
            attributes=attributes,
            optional=optional,
            associations=associations,
            default_associations=default_associations,
            permissions=permissions,
            cacheable=cacheable,
            key=key,
        )


def _model_attributes(schema_name: str, model: Optional[type], exclude: Tuple[str, ...]) -> Tuple[str, ...]:
    """Derive base attributes from a dataclass model."""
    if model is None:
        return ()
    if not dataclasses.is_dataclass(model):
        raise SchemaFault(
            schema_name,
            "attributes must be declared unless the model is a dataclass",
        )
    return tuple(
        f.name for f in dataclasses.fields(model)
        if f.name not in exclude and not f.name.startswith("_")
    )


# ============================================================================
# Projector
# ============================================================================

class Projector(metaclass=ProjectorMeta):
    """
    Base projector.

    One instance wraps one object for one projection level. Subclasses
    declare their schema in ``Meta`` and may define methods or properties
    named after fields to override how a value is read.

    Attributes available to hooks:
        object: the wrapped domain object
        options: resolved ``RequestOptions`` for this level
        current_user: the principal from the options
    """

    schema: ClassVar[Optional[Schema]] = None
    _hooks: ClassVar[FrozenSet[str]] = frozenset()

    many = False

    class Meta:
        """Override in subclasses for configuration."""
        pass

    def __init__(self, obj: Any, options: Optional[RequestOptions] = None):
        self.object = obj
        self.options = options if options is not None else RequestOptions()

    @property
    def current_user(self) -> Any:
        return self.options.current_user

    @classmethod
    def has_hook(cls, field_name: str) -> bool:
        return field_name in cls._hooks

    @classmethod
    def serialize(cls, obj: Any, **options: Any) -> Any:
        """
        Project ``obj`` with this projector through the default engine.

        Usage::

            data = UserProjector.serialize(user, only="id,name")
        """
        from ..engine import get_default_engine

        return get_default_engine().serialize(obj, cls, **options)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} object={type(self.object).__name__}>"
