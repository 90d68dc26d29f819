"""
Top-level public API surface. Stable facades only.
Canonical entrypoint: from endb import Database. Does not import cli.
"""

from __future__ import annotations

from . import config, core, serialization
from ._version import __version__
from .core.errors import (
    EndbError,
    NotFoundError,
    StorageUnavailableError,
    TypeConflictError,
    ValidationError,
)
from .core.types import DatabaseOptions, Entry
from .database import Database
from .serialization import deserialize, serialize

# Do not add exports without updating __all__.
__all__ = [
    "Database",
    "DatabaseOptions",
    "EndbError",
    "Entry",
    "NotFoundError",
    "StorageUnavailableError",
    "TypeConflictError",
    "ValidationError",
    "__version__",
    "config",
    "core",
    "deserialize",
    "serialization",
    "serialize",
]
