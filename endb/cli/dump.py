"""
Dump every raw entry of a store as a table (stdout) or CSV file.
Use: endb [--path FILE] [--name NAME] dump [--csv OUT] [--limit N]
Values are stored text (type tag included), not deserialized.
"""

from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path
from typing import List, Optional

from endb.core.errors import EndbError
from endb.core.types import DatabaseOptions
from endb.database import Database


def write_dump(db: Database, *, csv_path: Optional[str] = None, limit: Optional[int] = None) -> int:
    df = db.to_frame(limit=limit)
    if csv_path:
        out = Path(csv_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out, index=False)
        print(f"Wrote {len(df)} entries to {out}")
        return 0
    if df.empty:
        print("(empty)")
        return 0
    print(df.to_string(index=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = argparse.ArgumentParser(
        prog="endb dump",
        description="Print or export every raw entry of a store.",
    )
    ap.add_argument("--path", default=None, help="Database file")
    ap.add_argument("--name", default=None, help="Table (namespace) name")
    ap.add_argument("--csv", default=None, help="Write to this CSV file instead of stdout")
    ap.add_argument("--limit", type=int, default=None)
    args = ap.parse_args(argv)
    try:
        options = DatabaseOptions.from_config(name=args.name, path=args.path, file_must_exist=True)
        with Database(options=options) as db:
            return write_dump(db, csv_path=args.csv, limit=args.limit)
    except (EndbError, ValueError, sqlite3.Error) as e:
        print(f"dump failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
