from __future__ import annotations

import logging
import sqlite3
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src import config
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.exceptions import SearchBackendError
from src.search.backend import SearchBackend, SearchParams, SearchResult, SqliteFtsBackend
from src.search.cache import search_with_cache
from src.search.pagination import clamp_limit, decode_cursor
from src.search.query import AdvocateFilters, _finite_or_none
from src.seed.advocates import clamp_seed_count, generate_advocate_data

log = logging.getLogger(__name__)

app = FastAPI(title="Advocate Directory API")

app.add_middleware(RequestLoggingMiddleware)

NO_STORE = {"Cache-Control": "no-store"}


def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    """
    Helper to return a JSON error payload with a consistent shape.

    Example:
        { "error": "search_failed", "detail": "advocate search failed" }
    """
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail},
        headers=NO_STORE,
    )


def _search_cache_control() -> str:
    return (
        f"public, s-maxage={config.SEARCH_CACHE_MAX_AGE}, "
        f"stale-while-revalidate={config.SEARCH_CACHE_SWR}"
    )


def _clean_param(raw: str | None) -> str | None:
    """Trim a text query parameter; empty means absent."""
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _parse_years(raw: str | None) -> float | None:
    """
    Parse minYears/maxYears. Anything that is not a finite number is ignored
    (never coerced to 0).
    """
    cleaned = _clean_param(raw)
    if cleaned is None:
        return None
    return _finite_or_none(cleaned)


def _public_advocate(row: dict[str, Any]) -> dict[str, Any]:
    """Drop internal keys (createdAtMs) from a backend row."""
    return {key: value for key, value in row.items() if key != "createdAtMs"}


def _get_db_conn(request: Request) -> sqlite3.Connection:
    """
    Lazily open (and cache on app.state) the SQLite connection, applying the
    schema on first use.
    """
    conn: sqlite3.Connection | None = getattr(request.app.state, "db_conn", None)
    if conn is not None:
        return conn

    # Import here so tests can patch src.db before the first request.
    from src.db import apply_schema, get_connection

    conn = get_connection()
    apply_schema(conn)
    request.app.state.db_conn = conn
    return conn


def _get_search_backend(request: Request) -> SearchBackend:
    """
    Lazily construct and cache a SqliteFtsBackend instance on app.state.

    This keeps the HTTP layer decoupled from the specific backend
    implementation and makes it easy to inject a different backend in tests.
    """
    backend: SearchBackend | None = getattr(request.app.state, "search_backend", None)
    if backend is not None:
        return backend

    backend = SqliteFtsBackend(_get_db_conn(request))
    request.app.state.search_backend = backend
    return backend


@app.get("/health")
async def health():
    return {"ok": True}


@app.get("/api/advocates")
async def advocates_search(
    request: Request,
    q: str | None = None,
    city: str | None = None,
    degree: str | None = None,
    specialty: str | None = None,
    minYears: str | None = None,  # noqa: N803
    maxYears: str | None = None,  # noqa: N803
    limit: str | None = None,
    cursor: str | None = None,
):
    """
    Search advocates with keyset pagination.

    Query parameters never fail validation: bad limits are clamped to
    [1, SEARCH_MAX_LIMIT], non-numeric year bounds are ignored and a
    malformed cursor restarts at the first page.

    Response:
        {
          "data": [Advocate, ...],
          "pageInfo": {"nextCursor": str | null, "hasNextPage": bool, "limit": int}
        }
    """
    filters = AdvocateFilters(
        q=_clean_param(q),
        city=_clean_param(city),
        degree=_clean_param(degree),
        specialty=_clean_param(specialty),
        min_years=_parse_years(minYears),
        max_years=_parse_years(maxYears),
    )
    params = SearchParams(
        filters=filters,
        limit=clamp_limit(limit, config.SEARCH_DEFAULT_LIMIT, config.SEARCH_MAX_LIMIT),
        cursor=decode_cursor(cursor),
    )

    try:
        backend = _get_search_backend(request)
        result: SearchResult = search_with_cache(backend, params)
    except (SearchBackendError, sqlite3.Error):
        log.exception("advocate search failed")
        return _error_response(500, "search_failed", "advocate search failed")

    return JSONResponse(
        content={
            "data": [_public_advocate(row) for row in result.advocates],
            "pageInfo": result.page_info.to_dict(),
        },
        headers={"Cache-Control": _search_cache_control()},
    )


@app.post("/api/seed")
async def seed_advocates(request: Request, count: str | None = None):
    """
    Dev-only bulk insert of synthetic advocates (?count=N, clamped to
    [1, SEED_MAX_COUNT], default SEED_DEFAULT_COUNT).

    Disabled (404) unless SEED_ENDPOINT_ENABLED is set.
    """
    if not config.SEED_ENDPOINT_ENABLED:
        return _error_response(404, "not_found", "seed endpoint is disabled")

    n = clamp_seed_count(count, config.SEED_DEFAULT_COUNT, config.SEED_MAX_COUNT)
    rows = generate_advocate_data(n)

    from src.db import insert_advocates

    try:
        ids = insert_advocates(_get_db_conn(request), rows)
    except sqlite3.Error:
        log.exception("seed insert failed")
        return _error_response(500, "seed_failed", "could not insert advocates")

    log.info("seeded %d advocates", len(ids))
    return JSONResponse(content={"inserted": len(ids)}, headers=NO_STORE)
