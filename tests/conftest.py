# ruff: noqa: E402
# tests/conftest.py
from __future__ import annotations

import sqlite3
import sys
from collections.abc import Generator
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

# Ensure project root importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src import config
from src.db import apply_schema, insert_advocates, register_functions

# 2025-01-01T00:00:00Z
BASE_MS = 1_735_689_600_000


@pytest.fixture(autouse=True)
def _no_redis_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    """Autouse: keep the Redis first-page cache off unless a test enables it."""
    monkeypatch.setattr(config, "ADVOCATE_SEARCH_CACHE_ENABLED", False)


@pytest.fixture
def memory_db() -> Generator[SimpleNamespace, None, None]:
    """
    In-memory SQLite DB with the advocates schema + FTS5 index applied.

    Exposes seed_advocate() which inserts one row (and its FTS entry via
    trigger) and returns the new id.
    """
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    register_functions(conn)
    apply_schema(conn)

    def seed_advocate(
        *,
        first_name: str = "Jane",
        last_name: str = "Doe",
        city: str = "Austin",
        degree: str = "MD",
        specialties: list[str] | None = None,
        years: int = 5,
        phone: int = 5551234567,
        created_at_ms: int = BASE_MS,
    ) -> int:
        row: dict[str, Any] = {
            "firstName": first_name,
            "lastName": last_name,
            "city": city,
            "degree": degree,
            "specialties": specialties if specialties is not None else ["Bipolar"],
            "yearsOfExperience": years,
            "phoneNumber": phone,
            "createdAt": created_at_ms,
        }
        return insert_advocates(conn, [row])[0]

    def seed_many(count: int, *, same_timestamp: bool = False, **overrides: Any) -> list[int]:
        """Seed `count` rows, oldest first. Returns ids in insertion order."""
        ids = []
        for i in range(count):
            ts = BASE_MS if same_timestamp else BASE_MS + i * 1000
            ids.append(seed_advocate(first_name=f"Person{i}", created_at_ms=ts, **overrides))
        return ids

    yield SimpleNamespace(conn=conn, seed_advocate=seed_advocate, seed_many=seed_many)
    conn.close()


@pytest.fixture
def api_env(memory_db: SimpleNamespace) -> Generator[SimpleNamespace, None, None]:
    """
    TestClient wired to the in-memory DB through app.state, the same seam
    the app uses to cache its connection and backend.
    """
    from fastapi.testclient import TestClient

    from src.api.app import app
    from src.search.backend import SqliteFtsBackend

    app.state.db_conn = memory_db.conn
    app.state.search_backend = SqliteFtsBackend(memory_db.conn)

    client = TestClient(app)
    yield SimpleNamespace(
        app=app,
        client=client,
        conn=memory_db.conn,
        seed_advocate=memory_db.seed_advocate,
        seed_many=memory_db.seed_many,
    )

    app.state.db_conn = None
    app.state.search_backend = None
