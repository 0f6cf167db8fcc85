#!/usr/bin/env python
# scripts/seed.py
"""
Seed the advocates table with synthetic rows.

Usage:
  python -m scripts.seed --count=5000
  python -m scripts.seed --count=10000 --truncate

Uses DATABASE_URL (sqlite:///path) / DATABASE_PATH like the API.
"""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys

from src.config import LOG_LEVEL, SEED_BATCH_SIZE
from src.db import apply_schema, get_connection, insert_advocates, truncate_advocates
from src.seed.advocates import generate_advocate_data

log = logging.getLogger("scripts.seed")

DEFAULT_COUNT = 5000


def _positive_int(raw: str) -> int:
    try:
        value = int(float(raw))
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"--count must be a number; got {raw!r}") from err
    if value <= 0:
        raise argparse.ArgumentTypeError("--count must be > 0")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed synthetic advocates into SQLite.")
    p.add_argument("--count", type=_positive_int, default=DEFAULT_COUNT, help="Rows to insert.")
    p.add_argument(
        "--truncate",
        action="store_true",
        help="Delete existing advocates before seeding.",
    )
    p.add_argument(
        "--batch-size",
        type=_positive_int,
        default=SEED_BATCH_SIZE,
        help="Rows per INSERT batch.",
    )
    p.add_argument("--db", default=None, help="SQLite path (overrides DATABASE_URL).")
    return p.parse_args(argv)


def seed(conn: sqlite3.Connection, count: int, *, truncate: bool, batch_size: int) -> int:
    apply_schema(conn)
    if truncate:
        removed = truncate_advocates(conn)
        log.info("Truncated advocates table (%d rows).", removed)

    inserted = 0
    remaining = count
    while remaining > 0:
        size = min(batch_size, remaining)
        ids = insert_advocates(conn, generate_advocate_data(size))
        inserted += len(ids)
        remaining -= size
        log.info("Inserted %d/%d...", inserted, count)
    return inserted


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
    )
    args = parse_args(argv)

    conn = get_connection(args.db)
    try:
        inserted = seed(conn, args.count, truncate=args.truncate, batch_size=args.batch_size)
    except sqlite3.Error:
        log.exception("Seeding failed")
        return 1
    finally:
        conn.close()

    log.info("Done. Inserted %d advocates.", inserted)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
