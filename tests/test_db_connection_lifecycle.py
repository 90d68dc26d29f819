"""
Connection lifecycle: open_connection from options, sqlite_conn guaranteed close,
open/lock failures surfaced as StorageUnavailableError.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from endb import Database
from endb.core.errors import StorageUnavailableError
from endb.core.types import DatabaseOptions
from endb.store.sqlite_session import is_lock_error, open_connection, sqlite_conn


def test_sqlite_conn_closes_and_file_deletable(tmp_path):
    """After exiting sqlite_conn context, connection is closed and file can be deleted."""
    db_path = tmp_path / "t.sqlite"
    try:
        with sqlite_conn(db_path) as conn:
            conn.execute("CREATE TABLE t (x INTEGER)")
            conn.commit()
        Path(db_path).unlink()
    except OSError as e:
        pytest.fail(f"DB file could not be deleted after close: {e}")


def test_database_close_releases_file(tmp_path):
    d = Database("store", data_dir=tmp_path)
    d.set("a", 1)
    d.close()
    (tmp_path / "endb.sqlite").unlink()


def test_open_connection_creates_data_dir(tmp_path):
    data_dir = tmp_path / "nested" / "dir"
    conn = open_connection(DatabaseOptions(data_dir=data_dir))
    try:
        assert (data_dir / "endb.sqlite").exists()
    finally:
        conn.close()


def test_open_connection_memory_touches_no_file(tmp_path):
    conn = open_connection(DatabaseOptions(memory=True, data_dir=tmp_path / "unused"))
    try:
        assert conn.execute("SELECT 1").fetchone() == (1,)
    finally:
        conn.close()
    assert not (tmp_path / "unused").exists()


def test_file_must_exist(tmp_path):
    with pytest.raises(StorageUnavailableError) as exc_info:
        Database("store", path=tmp_path / "missing.sqlite", file_must_exist=True)
    assert exc_info.value.name == "StorageUnavailableError"

    existing = tmp_path / "present.sqlite"
    sqlite3.connect(str(existing)).close()
    with Database("store", path=existing, file_must_exist=True) as d:
        d.set("k", "v")
        assert d.get("k") == "v"


def test_unopenable_path_is_storage_unavailable(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    with pytest.raises(StorageUnavailableError):
        Database("store", data_dir=blocker / "sub")


def test_lock_timeout_is_storage_unavailable(tmp_path):
    path = tmp_path / "locked.sqlite"
    with Database("store", path=path) as setup:
        setup.set("a", 1)

    holder = sqlite3.connect(str(path), isolation_level=None)
    holder.execute("BEGIN EXCLUSIVE")
    try:
        with Database("store", path=path, timeout_ms=50) as d:
            with pytest.raises(StorageUnavailableError):
                d.set("a", 2)
    finally:
        holder.execute("ROLLBACK")
        holder.close()

    with Database("store", path=path) as d:
        assert d.get("a") == 1


def test_is_lock_error():
    assert is_lock_error(sqlite3.OperationalError("database is locked"))
    assert not is_lock_error(sqlite3.OperationalError("no such table: x"))
    assert not is_lock_error(ValueError("database is locked"))
