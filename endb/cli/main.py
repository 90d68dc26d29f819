"""
Top-level CLI dispatcher: endb [global options] <command> [args...].
Store location comes from endb.yaml / ENDB_* env, overridden by flags.
"""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
import sys
from typing import Any, Callable, Dict, List, Optional

from endb import config
from endb.core.errors import EndbError
from endb.core.types import DatabaseOptions
from endb.database import Database


def _print_value(value: Any) -> None:
    if isinstance(value, str):
        print(value)
    else:
        print(json.dumps(value, ensure_ascii=False))


def _cmd_get(db: Database, args: argparse.Namespace) -> int:
    value = db.get(args.key)
    if value is None:
        return 1
    _print_value(value)
    return 0


def _cmd_set(db: Database, args: argparse.Namespace) -> int:
    value: Any = args.value
    if args.json:
        try:
            value = json.loads(args.value)
        except ValueError as e:
            print(f"set failed: invalid JSON: {e}", file=sys.stderr)
            return 1
    db.set(args.key, value)
    return 0


def _cmd_delete(db: Database, args: argparse.Namespace) -> int:
    db.delete(args.key)
    return 0


def _cmd_has(db: Database, args: argparse.Namespace) -> int:
    found = db.has(args.key)
    print("true" if found else "false")
    return 0 if found else 1


def _cmd_find(db: Database, args: argparse.Namespace) -> int:
    print(json.dumps(db.find(args.prefix), ensure_ascii=False, indent=2))
    return 0


def _cmd_add(db: Database, args: argparse.Namespace) -> int:
    print(db.add(args.key, args.delta))
    return 0


def _cmd_subtract(db: Database, args: argparse.Namespace) -> int:
    print(db.subtract(args.key, args.delta))
    return 0


def _cmd_count(db: Database, args: argparse.Namespace) -> int:
    print(db.count)
    return 0


def _cmd_keys(db: Database, args: argparse.Namespace) -> int:
    for key in db.indexes:
        print(key)
    return 0


def _cmd_backup(db: Database, args: argparse.Namespace) -> int:
    print(db.backup(args.backup_name))
    return 0


def _cmd_clear(db: Database, args: argparse.Namespace) -> int:
    db.delete_all()
    return 0


def _cmd_dump(db: Database, args: argparse.Namespace) -> int:
    from endb.cli.dump import write_dump

    return write_dump(db, csv_path=args.csv, limit=args.limit)


_COMMANDS: Dict[str, Callable[[Database, argparse.Namespace], int]] = {
    "get": _cmd_get,
    "set": _cmd_set,
    "delete": _cmd_delete,
    "has": _cmd_has,
    "find": _cmd_find,
    "add": _cmd_add,
    "subtract": _cmd_subtract,
    "count": _cmd_count,
    "keys": _cmd_keys,
    "backup": _cmd_backup,
    "clear": _cmd_clear,
    "dump": _cmd_dump,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="endb",
        description="Key-value store on a SQLite table",
    )
    parser.add_argument("--path", default=None, help="Database file (default: <data-dir>/endb.sqlite)")
    parser.add_argument("--data-dir", default=None, help="Directory holding endb.sqlite")
    parser.add_argument("--name", default=None, help="Table (namespace) name (default: endb)")
    parser.add_argument("--timeout-ms", type=float, default=None, help="Lock timeout in milliseconds")
    parser.add_argument("--log-level", default=None, help="Logging level (default: ENDB_LOG_LEVEL or WARNING)")
    subparsers = parser.add_subparsers(dest="command", help="command")

    p = subparsers.add_parser("get", help="Print the value of KEY")
    p.add_argument("key")
    p = subparsers.add_parser("set", help="Store VALUE under KEY")
    p.add_argument("key")
    p.add_argument("value")
    p.add_argument("--json", action="store_true", help="Parse VALUE as JSON")
    p = subparsers.add_parser("delete", help="Remove KEY")
    p.add_argument("key")
    p = subparsers.add_parser("has", help="Exit 0 if KEY is set")
    p.add_argument("key")
    p = subparsers.add_parser("find", help="Print entries whose key starts with PREFIX")
    p.add_argument("prefix")
    for name, verb in (("add", "Add"), ("subtract", "Subtract")):
        p = subparsers.add_parser(name, help=f"{verb} DELTA to the integer under KEY")
        p.add_argument("key")
        p.add_argument("delta", type=int)
    subparsers.add_parser("count", help="Print the number of entries")
    subparsers.add_parser("keys", help="Print every key")
    p = subparsers.add_parser("backup", help="Copy the database to NAME.sqlite")
    p.add_argument("backup_name", nargs="?", default=None)
    subparsers.add_parser("clear", help="Delete every entry")
    p = subparsers.add_parser("dump", help="Print (or write as CSV) every raw entry")
    p.add_argument("--csv", default=None, help="Write to this CSV file instead of stdout")
    p.add_argument("--limit", type=int, default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    try:
        logging.basicConfig(
            level=(args.log_level or config.log_level()).upper(),
            stream=sys.stderr,
            format="%(levelname)s: %(name)s: %(message)s",
        )
        options = DatabaseOptions.from_config(
            name=args.name,
            data_dir=args.data_dir,
            path=args.path,
            timeout_ms=args.timeout_ms,
        )
        with Database(options=options) as db:
            return _COMMANDS[args.command](db, args)
    except EndbError as e:
        print(f"{args.command} failed: {e.name}: {e}", file=sys.stderr)
        return 1
    except (ValueError, sqlite3.Error) as e:
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
