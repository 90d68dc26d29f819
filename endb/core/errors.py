"""
Shared exception types for endb.
Every error carries a stable `name` so callers can branch on the failure kind.
"""

from __future__ import annotations


class EndbError(Exception):
    """Base exception for endb; catch this for any package-raised error."""

    name = "EndbError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(EndbError, ValueError):
    """Bad caller input, rejected before the backing store is touched."""

    name = "ValidationError"


class TypeConflictError(EndbError, TypeError):
    """Stored value is not numeric but an accumulate operation was requested."""

    name = "TypeConflictError"


class StorageUnavailableError(EndbError):
    """Backing store cannot be opened, is locked past the timeout, or is closed."""

    name = "StorageUnavailableError"


class NotFoundError(EndbError, KeyError):
    """Key is not set. Only raised by item access; get/find return absence values."""

    name = "NotFoundError"

    def __str__(self) -> str:
        return self.message


__all__ = [
    "EndbError",
    "NotFoundError",
    "StorageUnavailableError",
    "TypeConflictError",
    "ValidationError",
]
