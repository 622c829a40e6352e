"""
Config system - Layered typed configuration with validation.

The engine reads a single ``EngineConfig`` built once at process start.
``ConfigLoader`` merges the sources with precedence:
overrides > environment variables > .env file > config files > defaults
"""

from typing import Any, Dict, Optional, Type, get_type_hints, get_origin, get_args
from dataclasses import dataclass, field, fields, is_dataclass, MISSING
from pathlib import Path
import json
import os
import types

from .cache.core import CacheConfig


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class EngineConfig:
    """
    Projection engine switches.

    Attributes:
        validate_associations: Fail the whole level with ``InvalidAssociation``
            when a caller requests an association the schema does not declare.
        warn_invalid_fields: Report unknown optional fields as warnings
            alongside the top-level payload.
        default_associations_with_only: Keep default associations when the
            caller narrows fields with ``only``.
        identity_attribute: Attribute naming an object's identity in cache keys.
        version_attribute: Attribute naming an object's version in cache keys.
        cache: Field cache settings.
    """
    validate_associations: bool = False
    warn_invalid_fields: bool = False
    default_associations_with_only: bool = True
    identity_attribute: str = "id"
    version_attribute: str = "updated_at"
    cache: CacheConfig = field(default_factory=CacheConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validate_associations": self.validate_associations,
            "warn_invalid_fields": self.warn_invalid_fields,
            "default_associations_with_only": self.default_associations_with_only,
            "identity_attribute": self.identity_attribute,
            "version_attribute": self.version_attribute,
            "cache": self.cache.to_dict(),
        }


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env files > config files > defaults
    """

    def __init__(self, env_prefix: str = "RAPID_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "RAPID_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources with proper merge strategy.

        Merge order (later overrides earlier):
        1. Config files (JSON or YAML, glob patterns supported)
        2. .env file entries carrying the prefix
        3. Environment variables (RAPID_* prefix)
        4. Manual overrides

        Args:
            paths: List of config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        from glob import glob

        matches = sorted(glob(pattern))
        if not matches and not any(ch in pattern for ch in "*?["):
            raise ConfigError(f"Config file '{pattern}' does not exist")

        for path_str in matches:
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)
            else:
                raise ConfigError(f"Unsupported config file type: {path.name}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue

                if "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")

                    if key.startswith(self.env_prefix):
                        self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert RAPID_CACHE__MAX_SIZE to nested dict."""
        key = key[len(self.env_prefix):]

        # Split by double underscore for nested keys
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        # Boolean
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        # Number
        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        # JSON
        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        parts = path.split(".")
        current = self.config_data

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def get_engine_config(self) -> EngineConfig:
        """
        Build and validate the engine configuration.

        Unknown keys are ignored so a shared config file can carry
        settings for other components.
        """
        data = dict(self.config_data)
        cache_data = data.pop("cache", None) or {}
        if not isinstance(cache_data, dict):
            raise ConfigError("Config section 'cache' must be a mapping")

        cache = self._instantiate_dataclass(CacheConfig, cache_data)
        data["cache"] = cache
        return self._instantiate_dataclass(EngineConfig, data)

    def _instantiate_dataclass(self, config_class: Type, data: dict):
        """Instantiate dataclass config with validation."""
        kwargs = {}
        hints = get_type_hints(config_class)

        for field_info in fields(config_class):
            field_name = field_info.name
            field_type = hints.get(field_name, field_info.type)

            if field_name in data:
                value = data[field_name]

                # ints are acceptable where floats are declared
                if field_type is float and isinstance(value, int) and not isinstance(value, bool):
                    value = float(value)

                if not self._check_type(value, field_type):
                    raise ConfigError(
                        f"Config field '{field_name}' expected {getattr(field_type, '__name__', field_type)}, "
                        f"got {type(value).__name__}"
                    )

                kwargs[field_name] = value
            elif field_info.default is not MISSING:
                kwargs[field_name] = field_info.default
            elif field_info.default_factory is not MISSING:
                kwargs[field_name] = field_info.default_factory()
            else:
                raise ConfigError(
                    f"Required config field '{field_name}' not provided"
                )

        return config_class(**kwargs)

    def _check_type(self, value: Any, expected_type: Type) -> bool:
        """Basic type checking."""
        origin = get_origin(expected_type)
        if origin is types.UnionType or str(origin) == 'typing.Union':
            args = get_args(expected_type)
            if value is None:
                return True
            if args:
                return self._check_type(value, args[0])

        if origin:
            return isinstance(value, origin)

        if is_dataclass(expected_type):
            return isinstance(value, expected_type)

        # bool is an int subclass; keep the two apart
        if expected_type is int and isinstance(value, bool):
            return False

        try:
            return isinstance(value, expected_type)
        except TypeError:
            # For complex types, skip validation
            return True

    def to_dict(self) -> dict:
        """Export all config as dictionary."""
        return self.config_data.copy()


def load_engine_config(
    paths: Optional[list[str]] = None,
    *,
    env_prefix: str = "RAPID_",
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> EngineConfig:
    """Shortcut: ``ConfigLoader.load(...).get_engine_config()``."""
    return ConfigLoader.load(
        paths=paths,
        env_prefix=env_prefix,
        env_file=env_file,
        overrides=overrides,
    ).get_engine_config()
