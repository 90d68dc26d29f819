"""
Stable facade: error kinds and value types. No storage access.
Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    EndbError,
    NotFoundError,
    StorageUnavailableError,
    TypeConflictError,
    ValidationError,
)
from .types import DatabaseOptions, Entry

# Do not add exports without updating __all__.
__all__ = [
    "DatabaseOptions",
    "EndbError",
    "Entry",
    "NotFoundError",
    "StorageUnavailableError",
    "TypeConflictError",
    "ValidationError",
]
