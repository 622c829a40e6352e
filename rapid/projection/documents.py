"""
Declarative projectors for plain documents.

Schemas can be written as data instead of classes::

    type_key: type
    schemas:
      tester:
        attributes: [id, name]
        optional: [last_name]
        associations: [product, post]
        default_associations: [product]
        key: {single: tester, multiple: testers}
      post:
        attributes: [id, title, blurb]
        caches: [fields]

Each kind becomes a ``Projector`` subclass registered in a fresh
``ProjectorRegistry``. Document nodes are mappings carrying the kind
under the type key (``{"type": "tester", "id": 1, ...}``).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Type, Union

import yaml

from ..config import ConfigError
from .dispatch import ProjectorRegistry
from .exceptions import SchemaFault
from .projector import Projector

logger = logging.getLogger("rapid.projection.documents")

DECLARATION_KEYS = frozenset({
    "attributes",
    "optional",
    "associations",
    "default_associations",
    "caches",
    "key",
})


def load_document(path: Union[str, Path]) -> Any:
    """Read a JSON or YAML file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"File not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix == ".json":
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if suffix in (".yaml", ".yml"):
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    raise ConfigError(f"Unsupported file type '{suffix}' for {path}")


def build_projector(
    kind: str,
    declaration: Mapping[str, Any],
    registry: ProjectorRegistry,
) -> Type[Projector]:
    """Create and register one projector class for ``kind``."""
    if not isinstance(declaration, Mapping):
        raise SchemaFault(kind, "declaration must be a mapping")

    unknown = sorted(set(declaration) - DECLARATION_KEYS)
    if unknown:
        raise SchemaFault(kind, f"unknown declaration keys {unknown}")

    meta_attrs: Dict[str, Any] = {
        name: declaration[name] for name in DECLARATION_KEYS if name in declaration
    }
    meta_attrs.setdefault("attributes", ())
    meta_attrs.update(name=kind, kind=kind, registry=registry)

    meta = type("Meta", (), meta_attrs)
    class_name = "".join(part.capitalize() for part in str(kind).replace("-", "_").split("_")) + "Projector"
    return type(class_name, (Projector,), {"Meta": meta, "__module__": __name__})


def build_registry(document: Mapping[str, Any], type_key: str = "type") -> ProjectorRegistry:
    """
    Build a registry from ``{"schemas": {kind: declaration}}``.

    A ``type_key`` entry in the document overrides the argument.
    """
    if not isinstance(document, Mapping):
        raise SchemaFault("document", "schema document must be a mapping")

    schemas = document.get("schemas")
    if not isinstance(schemas, Mapping):
        raise SchemaFault("document", "missing 'schemas' mapping")

    registry = ProjectorRegistry(type_key=str(document.get("type_key", type_key)))
    for kind, declaration in schemas.items():
        build_projector(str(kind), declaration or {}, registry)

    logger.debug("Built %d document projectors", len(schemas))
    return registry


def load_registry(path: Union[str, Path], type_key: str = "type") -> ProjectorRegistry:
    """Shortcut: ``build_registry(load_document(path))``."""
    return build_registry(load_document(path), type_key=type_key)
