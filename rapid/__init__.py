"""
Rapid - Declarative projection of object graphs into JSON-ready data

Complete integration of:
- Projectors: Per-type schemas with optional fields, associations and defaults
- Options: Request-driven field selection (only / except / extra fields / sub-options)
- Permissions: Field-level predicates against the current principal
- Cache: Per-field memoization keyed by object identity and version
- Faults: Structured error handling with fault domains
- Config: Layered YAML / JSON / environment configuration
"""

__version__ = "0.1.0"

# ============================================================================
# Engine
# ============================================================================

from .engine import (
    ProjectionEngine,
    ProjectionResult,
    configure,
    get_default_engine,
    project,
    serialize,
)

# ============================================================================
# Projection
# ============================================================================

from .projection import (
    Projector,
    ProjectorRegistry,
    RootKey,
    Schema,
    default_registry,
    verify_permissions,
    InvalidField,
    InvalidAssociation,
    ProjectionFault,
    ProjectionWarning,
    SchemaFault,
)

# ============================================================================
# Configuration
# ============================================================================

from .config import ConfigError, ConfigLoader, EngineConfig, load_engine_config
from .cache import CacheConfig

# ============================================================================
# Faults
# ============================================================================

from .faults import Fault, FaultDomain, Severity

__all__ = [
    "__version__",
    # Engine
    "ProjectionEngine",
    "ProjectionResult",
    "configure",
    "get_default_engine",
    "project",
    "serialize",
    # Projection
    "Projector",
    "ProjectorRegistry",
    "RootKey",
    "Schema",
    "default_registry",
    "verify_permissions",
    "InvalidField",
    "InvalidAssociation",
    "ProjectionFault",
    "ProjectionWarning",
    "SchemaFault",
    # Configuration
    "CacheConfig",
    "ConfigError",
    "ConfigLoader",
    "EngineConfig",
    "load_engine_config",
    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
]
