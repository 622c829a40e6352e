"""
RapidCache backends.
"""

from .memory import MemoryBackend
from .null import NullBackend

__all__ = ["MemoryBackend", "NullBackend"]
