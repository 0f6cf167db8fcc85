import json
import logging
import os
import sqlite3
import time
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from src.config import DEFAULT_DB_URL

log = logging.getLogger(__name__)

# -------------------- schema --------------------

# advocates_fts is a standalone FTS5 table whose rowid mirrors advocates.id.
# The porter tokenizer gives plural/singular tolerance on the server side.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS advocates (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  first_name TEXT NOT NULL,
  last_name TEXT NOT NULL,
  city TEXT NOT NULL,
  degree TEXT NOT NULL,
  specialties TEXT NOT NULL DEFAULT '[]',
  years_of_experience INTEGER NOT NULL CHECK (years_of_experience >= 0),
  phone_number INTEGER NOT NULL,
  created_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_advocates_created_id
  ON advocates (created_at DESC, id DESC);

CREATE INDEX IF NOT EXISTS idx_advocates_years
  ON advocates (years_of_experience);

CREATE VIRTUAL TABLE IF NOT EXISTS advocates_fts
USING fts5(
  first_name,
  last_name,
  city,
  degree,
  specialties,
  tokenize = 'porter unicode61 remove_diacritics 2'
);

CREATE TRIGGER IF NOT EXISTS advocates_fts_ai
AFTER INSERT ON advocates
BEGIN
  INSERT INTO advocates_fts(rowid, first_name, last_name, city, degree, specialties)
  VALUES (
    new.id,
    new.first_name,
    new.last_name,
    new.city,
    new.degree,
    (SELECT group_concat(value, ' ') FROM json_each(new.specialties))
  );
END;

CREATE TRIGGER IF NOT EXISTS advocates_fts_ad
AFTER DELETE ON advocates
BEGIN
  DELETE FROM advocates_fts WHERE rowid = old.id;
END;
"""

# -------------------- basics --------------------


def _path_from_url(url: str) -> str:
    if not url.startswith("sqlite:///"):
        raise RuntimeError(f"Only sqlite supported; got {url}")
    return url.removeprefix("sqlite:///")


def _db_path() -> str:
    # Prefer DATABASE_URL if set; otherwise DATABASE_PATH; otherwise <repo>/dev.db
    url = os.environ.get("DATABASE_URL")
    if url:
        return _path_from_url(url)
    path = os.environ.get("DATABASE_PATH")
    if path:
        return path
    return _path_from_url(DEFAULT_DB_URL)


def get_connection(db_path: str | None = None) -> sqlite3.Connection:
    """
    Shared SQLite connection helper for the API, scripts and tests.

    - If db_path is None, uses _db_path() (DATABASE_URL/DATABASE_PATH/<repo>/dev.db).
    - Sets row_factory to sqlite3.Row for dict-like access.
    """
    if db_path is None:
        db_path = _db_path()
    con = sqlite3.connect(db_path)
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys=ON")
    register_functions(con)
    return con


def _casefold(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).casefold()


def register_functions(conn: sqlite3.Connection) -> None:
    """
    Register casefold(text) on a connection.

    SQLite's LIKE only ignores case for ASCII letters; substring filters
    compare casefold(column) against a casefolded pattern instead.
    """
    conn.create_function("casefold", 1, _casefold, deterministic=True)


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create the advocates table, FTS index and sync triggers if missing."""
    conn.executescript(SCHEMA_SQL)
    conn.commit()


def now_ms() -> int:
    return int(time.time() * 1000)


# -------------------- writes (seed only) --------------------


def insert_advocates(
    conn: sqlite3.Connection,
    rows: Iterable[Mapping[str, Any]],
    *,
    created_at_ms: int | None = None,
) -> list[int]:
    """
    Bulk insert advocate rows and return their new ids in insertion order.

    Rows use the public camelCase keys (firstName, lastName, city, degree,
    specialties, yearsOfExperience, phoneNumber). Every row of one call shares
    a single created_at, the way a multi-row INSERT with a now() default
    behaves; ids break the tie.
    """
    created_at = now_ms() if created_at_ms is None else int(created_at_ms)
    ids: list[int] = []
    cur = conn.cursor()
    for row in rows:
        cur.execute(
            """
            INSERT INTO advocates (
              first_name, last_name, city, degree, specialties,
              years_of_experience, phone_number, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                row["firstName"],
                row["lastName"],
                row["city"],
                row["degree"],
                json.dumps(list(row.get("specialties") or []), ensure_ascii=False),
                int(row["yearsOfExperience"]),
                int(row["phoneNumber"]),
                int(row.get("createdAt", created_at)),
            ),
        )
        ids.append(int(cur.lastrowid))
    conn.commit()
    log.debug("inserted %d advocates (created_at=%d)", len(ids), created_at)
    return ids


def truncate_advocates(conn: sqlite3.Connection) -> int:
    """Delete every advocate row (and FTS entry via trigger). Returns rows removed."""
    cur = conn.execute("DELETE FROM advocates")
    conn.commit()
    return cur.rowcount


# -------------------- reads --------------------


def iso_from_ms(ms: int) -> str:
    dt = datetime.fromtimestamp(ms / 1000, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def row_to_advocate(row: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map a raw advocates row to the public JSON shape.

    created_at stays available as createdAtMs so callers can build keyset
    cursors without re-parsing the ISO string.
    """
    specialties = row["specialties"]
    if isinstance(specialties, str):
        try:
            specialties = json.loads(specialties)
        except json.JSONDecodeError:
            specialties = []
    return {
        "id": int(row["id"]),
        "firstName": row["first_name"],
        "lastName": row["last_name"],
        "city": row["city"],
        "degree": row["degree"],
        "specialties": list(specialties or []),
        "yearsOfExperience": int(row["years_of_experience"]),
        "phoneNumber": int(row["phone_number"]),
        "createdAt": iso_from_ms(int(row["created_at"])),
        "createdAtMs": int(row["created_at"]),
    }
