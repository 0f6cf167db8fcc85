#!/usr/bin/env python
# scripts/apply_schema.py
from __future__ import annotations

import argparse
import sys

from src.db import _db_path, apply_schema, get_connection


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Create the advocates schema + FTS index.")
    p.add_argument("--db", default=None, help="SQLite path (overrides DATABASE_URL).")
    args = p.parse_args(argv)

    db_path = args.db or _db_path()
    conn = get_connection(db_path)
    try:
        apply_schema(conn)
        count = conn.execute("SELECT COUNT(*) FROM advocates").fetchone()[0]
    finally:
        conn.close()

    print(f"Schema applied to {db_path} ({count} advocates present).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
