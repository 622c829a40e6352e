"""
``rapid project`` — project a JSON/YAML document through declared schemas.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ...config import load_engine_config
from ...engine import ProjectionEngine, ProjectionResult
from ...projection.documents import load_document, load_registry
from ...projection.exceptions import SchemaFault

logger = logging.getLogger("rapid.cli.project")


def parse_params(pairs: Sequence[str]) -> Dict[str, str]:
    """``["fields=id,name", "key=x"]`` -> ``{"fields": "id,name", "key": "x"}``."""
    params: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"expected NAME=VALUE, got '{pair}'")
        params[name.strip()] = value
    return params


def run_projection(
    data_path: Path,
    schemas_path: Path,
    *,
    root: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
    config_paths: Optional[Sequence[str]] = None,
) -> ProjectionResult:
    """
    Load config, schemas and data, then project.

    Without ``root`` the top-level node (or each element of a top-level
    list) must carry its kind under the registry's type key.
    """
    config = load_engine_config(paths=list(config_paths) if config_paths else None)
    registry = load_registry(schemas_path)
    data = load_document(data_path)

    projector = None
    if root is not None:
        projector = registry.for_kind(root)
        if projector is None:
            raise SchemaFault(root, "no schema declared for this kind")

    logger.debug("Projecting %s with %r", data_path, registry)
    engine = ProjectionEngine(config, registry=registry)
    return engine.project(data, projector, options or {})
