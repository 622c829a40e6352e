"""
RapidCache — Fault domain integration.

Typed cache faults. The projection engine never lets a cache fault
abort a projection; they surface from the backends and factories.
"""

from __future__ import annotations

from typing import Any, Optional

from ..faults.core import Fault, FaultDomain, Severity


class CacheFault(Fault):
    """Base class for all cache faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.WARN,
        retryable: bool = True,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CACHE,
            severity=severity,
            retryable=retryable,
            public=False,
            metadata=metadata,
        )


class CacheSerializationFault(CacheFault):
    """Failed to serialize/deserialize cache value."""

    def __init__(self, key: str, operation: str, reason: str):
        super().__init__(
            code="CACHE_SERIALIZATION_FAILED",
            message=f"Cache {operation} failed for key '{key}': {reason}",
            severity=Severity.WARN,
            retryable=False,
            metadata={"key": key, "operation": operation, "reason": reason},
        )


class CacheBackendFault(CacheFault):
    """Generic cache backend error."""

    def __init__(self, backend: str, operation: str, reason: str):
        super().__init__(
            code="CACHE_BACKEND_ERROR",
            message=f"Cache backend '{backend}' error during {operation}: {reason}",
            severity=Severity.ERROR,
            retryable=True,
            metadata={"backend": backend, "operation": operation, "reason": reason},
        )


class CacheConfigFault(CacheFault):
    """Cache configuration error."""

    def __init__(self, reason: str):
        super().__init__(
            code="CACHE_CONFIG_INVALID",
            message=f"Invalid cache configuration: {reason}",
            severity=Severity.FATAL,
            retryable=False,
            metadata={"reason": reason},
        )
