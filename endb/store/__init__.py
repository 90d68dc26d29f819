"""
Store: SQLite connection lifecycle, table statements, tabular reads.
No value semantics; values cross this layer as stored text.
"""

from __future__ import annotations

from .schema import TableStatements, quote_identifier
from .sqlite_session import is_lock_error, open_connection, sqlite_conn

__all__ = ["TableStatements", "is_lock_error", "open_connection", "quote_identifier", "sqlite_conn"]
