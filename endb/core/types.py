"""
Shared value types: the stored Entry and the validated DatabaseOptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ValidationError

DEFAULT_NAME = "endb"
DEFAULT_FILENAME = "endb.sqlite"
DEFAULT_TIMEOUT_MS = 5000


@dataclass(frozen=True)
class Entry:
    """One key and its value. `value` is raw stored text or a deserialized value, per caller."""

    key: str
    value: Any


@dataclass(frozen=True)
class DatabaseOptions:
    """
    Validated primitives for opening a store.

    `path` names the database file directly; otherwise the file is
    `data_dir/endb.sqlite`. `memory` ignores both.
    """

    name: str = DEFAULT_NAME
    data_dir: Union[str, Path] = "."
    path: Optional[Union[str, Path]] = None
    memory: bool = False
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    file_must_exist: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise ValidationError("Database name must be a string")
        if not isinstance(self.memory, bool):
            raise ValidationError('The option "memory" must be a boolean')
        if not isinstance(self.file_must_exist, bool):
            raise ValidationError('The option "file_must_exist" must be a boolean')
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, (int, float)):
            raise ValidationError('The option "timeout_ms" must be a number')
        if self.timeout_ms < 0:
            raise ValidationError('The option "timeout_ms" must not be negative')
        if not isinstance(self.data_dir, (str, Path)):
            raise ValidationError('The option "data_dir" must be a path')
        if self.path is not None and not isinstance(self.path, (str, Path)):
            raise ValidationError('The option "path" must be a path')

    @property
    def timeout_s(self) -> float:
        return float(self.timeout_ms) / 1000.0

    def resolved_path(self) -> Optional[Path]:
        """Absolute database file path, or None for an in-memory store."""
        if self.memory:
            return None
        if self.path is not None:
            return Path(self.path).expanduser().resolve()
        return (Path(self.data_dir).expanduser() / DEFAULT_FILENAME).resolve()

    def backup_dir(self) -> Path:
        """Directory that relative backup names are resolved against."""
        db_file = self.resolved_path()
        if db_file is None:
            return Path(self.data_dir).expanduser().resolve()
        return db_file.parent

    @classmethod
    def from_config(cls, **overrides: Any) -> "DatabaseOptions":
        """Options from endb.config (defaults <- endb.yaml <- env), then explicit overrides."""
        from endb import config

        cfg = config.get_config()["store"]
        merged: Dict[str, Any] = {
            "name": cfg["name"],
            "data_dir": cfg["data_dir"],
            "path": cfg.get("path"),
            "memory": bool(cfg["memory"]),
            "timeout_ms": cfg["timeout_ms"],
            "file_must_exist": bool(cfg.get("file_must_exist", False)),
        }
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**merged)


__all__ = ["DEFAULT_NAME", "DEFAULT_TIMEOUT_MS", "DatabaseOptions", "Entry"]
