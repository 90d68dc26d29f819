"""
Table identifier allow-listing and the statements run against a store table.

Only allow-listed identifiers are ever placed in statement text; keys and
values are always bound as parameters.
"""

from __future__ import annotations

import re

from endb.core.errors import ValidationError

MAX_IDENTIFIER_LEN = 64
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ACCUMULATE_FN = "endb_accumulate"


def quote_identifier(name: str) -> str:
    """Validate a table name and return it double-quoted."""
    if not isinstance(name, str) or not name:
        raise ValidationError("Database name must be a non-empty string")
    if len(name) > MAX_IDENTIFIER_LEN:
        raise ValidationError(f"Database name too long (> {MAX_IDENTIFIER_LEN})")
    if not _IDENTIFIER_RE.match(name):
        raise ValidationError(f"Database name must be letters, digits and underscores: {name!r}")
    if name.lower().startswith("sqlite_"):
        raise ValidationError(f"Database name is reserved: {name!r}")
    return f'"{name}"'


class TableStatements:
    """Every statement the engine issues, bound to one validated table."""

    def __init__(self, name: str) -> None:
        table = quote_identifier(name)
        self.table = table
        self.create = f"CREATE TABLE IF NOT EXISTS {table} (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
        self.drop = f"DROP TABLE IF EXISTS {table}"
        self.select_one = f"SELECT value FROM {table} WHERE key = ?"
        self.exists = f"SELECT 1 FROM {table} WHERE key = ? LIMIT 1"
        self.select_all = f"SELECT key, value FROM {table} WHERE key IS NOT NULL ORDER BY rowid"
        self.select_prefix = (
            f"SELECT key, value FROM {table} WHERE substr(key, 1, length(?)) = ? ORDER BY rowid"
        )
        self.select_keys = f"SELECT key FROM {table} ORDER BY rowid"
        self.count = f"SELECT count(*) FROM {table}"
        self.upsert = (
            f"INSERT INTO {table} (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value"
        )
        # Single-statement read-modify-write; the WHERE skips non-integer rows.
        self.accumulate = (
            f"INSERT INTO {table} (key, value) VALUES (?, {ACCUMULATE_FN}(NULL, ?)) "
            f"ON CONFLICT(key) DO UPDATE SET value = {ACCUMULATE_FN}(value, ?) "
            f"WHERE {ACCUMULATE_FN}(value, ?) IS NOT NULL "
            "RETURNING value"
        )
        self.delete_one = f"DELETE FROM {table} WHERE key = ?"
        self.delete_all = f"DELETE FROM {table}"
