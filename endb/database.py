"""
Key-value engine: one SQLite table per instance, string keys, tagged values.

Every operation creates the table if needed, then runs one statement on the
instance's own connection. Values cross the table boundary through
endb.serialization. add/subtract are one UPSERT statement whose update
expression runs the accumulate step inside SQLite.
"""

from __future__ import annotations

import logging
import math
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd

from . import serialization
from .core.errors import (
    NotFoundError,
    StorageUnavailableError,
    TypeConflictError,
    ValidationError,
)
from .core.types import DEFAULT_NAME, DEFAULT_TIMEOUT_MS, DatabaseOptions, Entry
from .events import EVENT_GET, EVENT_SET, EventBus, Listener
from .store.schema import ACCUMULATE_FN, TableStatements
from .store.sqlite_backend import read_table
from .store.sqlite_session import is_lock_error, open_connection, sqlite_conn

logger = logging.getLogger(__name__)


def _sql_accumulate(text: Optional[str], delta: str) -> Optional[str]:
    return serialization.accumulate(text, int(delta))


def _key_text(key: Any) -> Optional[str]:
    """str of a str or number key; integral floats drop the fraction (1.0 -> "1")."""
    if isinstance(key, bool) or not isinstance(key, (str, int, float)):
        return None
    if isinstance(key, float):
        if not math.isfinite(key):
            return None
        if key.is_integer():
            key = int(key)
    return str(key) or None


def coerce_key(key: Any) -> str:
    """Keys are str or numbers, stored as str. Empty or missing keys are rejected."""
    text = _key_text(key)
    if text is None:
        raise ValidationError("Key is not specified")
    return text


class Database:
    """
    Persistent key-value store over one SQLite table.

    Usage:
        with Database("settings", data_dir="data") as db:
            db.set("theme", {"dark": True})
            db.add("visits", 1)
            db.get("theme")  # {'dark': True}
    """

    def __init__(
        self,
        name: str = DEFAULT_NAME,
        *,
        data_dir: Union[str, Path] = ".",
        path: Optional[Union[str, Path]] = None,
        memory: bool = False,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        file_must_exist: bool = False,
        options: Optional[DatabaseOptions] = None,
    ) -> None:
        if options is None:
            options = DatabaseOptions(
                name=name,
                data_dir=data_dir,
                path=path,
                memory=memory,
                timeout_ms=timeout_ms,
                file_must_exist=file_must_exist,
            )
        self.options = options
        self._sql = TableStatements(options.name)
        self.events = EventBus(options.name)
        self._conn: Optional[sqlite3.Connection] = open_connection(options)
        self._conn.create_function(ACCUMULATE_FN, 2, _sql_accumulate, deterministic=True)

    @classmethod
    def from_config(cls, **overrides: Any) -> "Database":
        """Open a store from endb.config (defaults <- endb.yaml <- env), then overrides."""
        return cls(options=DatabaseOptions.from_config(**overrides))

    def __repr__(self) -> str:
        where = ":memory:" if self.options.memory else str(self.options.resolved_path())
        state = "closed" if self._conn is None else "open"
        return f"Database(name={self.name!r}, path={where!r}, {state})"

    @property
    def name(self) -> str:
        return self.options.name

    @property
    def closed(self) -> bool:
        return self._conn is None

    # ------------------------- Internals -------------------------

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Own connection with the table in place; lock timeouts become StorageUnavailableError."""
        conn = self._conn
        if conn is None:
            raise StorageUnavailableError(f"Database {self.name!r} is closed")
        try:
            conn.execute(self._sql.create)
            yield conn
        except sqlite3.OperationalError as exc:
            if conn.in_transaction:
                conn.rollback()
            if is_lock_error(exc):
                logger.warning("Lock timeout on %s after %sms: %s", self.name, self.options.timeout_ms, exc)
                raise StorageUnavailableError(f"Database {self.name!r} is locked: {exc}") from exc
            raise

    def _fetch_value(self, key: str) -> Optional[str]:
        with self._session() as conn:
            row = conn.execute(self._sql.select_one, (key,)).fetchone()
        return None if row is None else row[0]

    def _accumulate(self, key: Any, delta: int) -> int:
        key = coerce_key(key)
        step = str(int(delta))
        with self._session() as conn:
            rows = conn.execute(self._sql.accumulate, (key, step, step, step)).fetchall()
            conn.commit()
        if not rows:
            raise TypeConflictError(f"Value of key {key!r} is not numeric")
        return serialization.deserialize(rows[0][0])

    # ------------------------- Public API -------------------------

    @property
    def count(self) -> int:
        """Number of entries in the store."""
        with self._session() as conn:
            return int(conn.execute(self._sql.count).fetchone()[0])

    @property
    def indexes(self) -> List[str]:
        """Every stored key, in insertion order."""
        with self._session() as conn:
            return [row[0] for row in conn.execute(self._sql.select_keys)]

    def has(self, key: Any) -> bool:
        try:
            key = coerce_key(key)
        except ValidationError:
            return False
        with self._session() as conn:
            return conn.execute(self._sql.exists, (key,)).fetchone() is not None

    def get(self, key: Any, default: Any = None) -> Any:
        """Deserialized value of key, or default when the key is not set."""
        key = coerce_key(key)
        text = self._fetch_value(key)
        if text is None:
            return default
        self.events.emit(EVENT_GET, Entry(key, serialization.deserialize(text)))
        return serialization.deserialize(text)

    def get_all(self) -> List[Entry]:
        """Every entry in insertion order. Values are stored text; pass them to deserialize()."""
        with self._session() as conn:
            return [Entry(k, v) for k, v in conn.execute(self._sql.select_all)]

    def items(self) -> Iterator[Tuple[str, Any]]:
        for entry in self.get_all():
            yield entry.key, serialization.deserialize(entry.value)

    def find(self, prefix: Any) -> Dict[str, Any]:
        """Entries whose key starts with prefix (case-sensitive), keyed by full key."""
        prefix = _key_text(prefix)
        if prefix is None:
            raise ValidationError("Prefix is not specified")
        with self._session() as conn:
            rows = conn.execute(self._sql.select_prefix, (prefix, prefix)).fetchall()
        return {k: serialization.deserialize(v) for k, v in rows}

    def set(self, key: Any, value: Any) -> Entry:
        """Insert or replace key. Returns the stored entry with value as given."""
        key = coerce_key(key)
        text = serialization.serialize(value)
        with self._session() as conn:
            conn.execute(self._sql.upsert, (key, text))
            conn.commit()
        self.events.emit(EVENT_SET, Entry(key, serialization.deserialize(text)))
        return Entry(key, value)

    def delete(self, key: Any) -> bool:
        """Remove key if present. Always True."""
        try:
            key = coerce_key(key)
        except ValidationError:
            return True
        with self._session() as conn:
            conn.execute(self._sql.delete_one, (key,))
            conn.commit()
        return True

    def delete_all(self) -> bool:
        with self._session() as conn:
            conn.execute(self._sql.delete_all)
            conn.commit()
        return True

    def destroy(self) -> None:
        """Delete every entry and drop the table. Irreversible."""
        with self._session() as conn:
            conn.execute(self._sql.delete_all)
            conn.commit()
            conn.execute(self._sql.drop)
            conn.commit()
        logger.debug("Dropped table %s", self.name)

    def add(self, key: Any, delta: Any) -> int:
        """current + delta (absent key counts as 0). Returns the new total."""
        return self._accumulate(key, serialization.coerce_delta(delta))

    def subtract(self, key: Any, delta: Any) -> int:
        """current - delta (absent key counts as 0). Returns the new total."""
        return self._accumulate(key, -serialization.coerce_delta(delta))

    def backup(self, name: Optional[str] = None) -> Path:
        """
        Online copy of the whole database to `<name>.sqlite`.
        Relative names land next to the database file (data_dir for memory stores).
        """
        if name is None:
            name = f"backup-{int(time.time() * 1000)}"
        if not isinstance(name, str) or not name:
            raise ValidationError("Name must be a string")
        target = Path(f"{name}.sqlite").expanduser()
        if not target.is_absolute():
            target = self.options.backup_dir() / target
        target.parent.mkdir(parents=True, exist_ok=True)
        with self._session() as conn:
            with sqlite_conn(target) as dest:
                conn.backup(dest)
        logger.debug("Backed up %s to %s", self.name, target)
        return target

    def to_frame(self, limit: Optional[int] = None) -> pd.DataFrame:
        """Raw entries as a DataFrame with columns key, value (stored text)."""
        with self._session() as conn:
            return read_table(conn, self._sql, limit=limit)

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe to "get" or "set" notifications. Delivery is asynchronous."""
        return self.events.on(event, listener)

    def off(self, event: str, listener: Listener) -> bool:
        return self.events.off(event, listener)

    def close(self) -> None:
        """Release the handle. Later operations raise StorageUnavailableError."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        self.events.close()
        conn.close()
        logger.debug("Closed %s", self.name)

    # ------------------------- Mapping protocol -------------------------

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __getitem__(self, key: Any) -> Any:
        key = coerce_key(key)
        text = self._fetch_value(key)
        if text is None:
            raise NotFoundError(f"Key {key!r} is not set")
        self.events.emit(EVENT_GET, Entry(key, serialization.deserialize(text)))
        return serialization.deserialize(text)

    def __setitem__(self, key: Any, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: Any) -> None:
        self.delete(key)

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[str]:
        return iter(self.indexes)
