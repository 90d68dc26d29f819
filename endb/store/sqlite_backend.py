"""
Tabular reads of a store table as a pandas DataFrame.
Uses the caller's connection; never opens its own.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

import pandas as pd

from .schema import TableStatements


def read_table(
    conn: sqlite3.Connection,
    statements: TableStatements,
    *,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """Raw entries (key, value) in insertion order. Values are stored text, not deserialized."""
    q = statements.select_all
    params: tuple = ()
    if limit is not None:
        q += " LIMIT ?"
        params = (int(limit),)
    return pd.read_sql_query(q, conn, params=params)
