"""
SQLite connection lifecycle: opening the store handle from validated options,
and a context manager with guaranteed close for short-lived connections.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Union

from endb.core.errors import StorageUnavailableError
from endb.core.types import DatabaseOptions

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_LOCK_MESSAGES = ("database is locked", "database table is locked", "database is busy")


def is_lock_error(exc: BaseException) -> bool:
    """True for SQLite busy/locked errors, i.e. the timeout budget ran out."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    msg = str(exc).lower()
    return any(m in msg for m in _LOCK_MESSAGES)


def open_connection(options: DatabaseOptions) -> sqlite3.Connection:
    """
    Open the store handle described by options.
    Creates the data directory unless the file must already exist.
    Raises StorageUnavailableError when the file cannot be opened.
    """
    db_file = options.resolved_path()
    if db_file is None:
        target = MEMORY_PATH
    else:
        if options.file_must_exist and not db_file.is_file():
            raise StorageUnavailableError(f"Database file does not exist: {db_file}")
        try:
            db_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot create data directory {db_file.parent}: {exc}") from exc
        target = str(db_file)
    try:
        conn = sqlite3.connect(target, timeout=options.timeout_s)
        conn.execute(f"PRAGMA busy_timeout={int(options.timeout_ms)};")
    except sqlite3.Error as exc:
        raise StorageUnavailableError(f"Cannot open database {target}: {exc}") from exc
    logger.debug("Opened %s (timeout %sms)", target, options.timeout_ms)
    return conn


@contextmanager
def sqlite_conn(db_path: Union[str, Path]) -> Generator[sqlite3.Connection, None, None]:
    """
    Yield a SQLite connection that is always closed on exit.
    """
    path = str(Path(db_path).resolve())
    try:
        conn = sqlite3.connect(path)
    except sqlite3.Error as exc:
        raise StorageUnavailableError(f"Cannot open database {path}: {exc}") from exc
    try:
        yield conn
    finally:
        conn.close()
