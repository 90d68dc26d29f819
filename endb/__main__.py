"""Allow python -m endb to run the CLI."""
from __future__ import annotations

from endb.cli.main import main

if __name__ == "__main__":
    raise SystemExit(main())
