"""
``rapid config`` — show the resolved engine configuration.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ...config import load_engine_config


def resolved_config(config_paths: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    config = load_engine_config(paths=list(config_paths) if config_paths else None)
    return config.to_dict()
