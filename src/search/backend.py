from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.db import register_functions, row_to_advocate
from src.exceptions import SearchBackendError

from .normalize import normalize_text, stem_words, text_matches
from .normalize import filter_advocates as _filter_by_term
from .pagination import (
    ORDER_BY_SQL,
    Cursor,
    PageInfo,
    after_cursor,
    apply_keyset_pagination,
    build_page,
    sort_key,
)
from .query import AdvocateFilters, _clean_text, _finite_or_none, build_filter_conditions

log = logging.getLogger(__name__)


@dataclass
class SearchParams:
    """
    One page request: the filter set plus keyset position.

    Attributes:
        filters:
            AdvocateFilters applied before pagination.
        limit:
            Page size, already clamped by the caller.
        cursor:
            Decoded keyset cursor, or None for the first page.
    """

    filters: AdvocateFilters = field(default_factory=AdvocateFilters)
    limit: int = 50
    cursor: Cursor | None = None

    @property
    def is_first_page(self) -> bool:
        return self.cursor is None


@dataclass
class SearchResult:
    """
    Container for search results returned by a SearchBackend.

    Attributes:
        advocates:
            Row dicts as produced by row_to_advocate() (public keys plus
            createdAtMs).
        page_info:
            Keyset page metadata for this page.
    """

    advocates: list[dict[str, Any]]
    page_info: PageInfo


class SearchBackend(Protocol):
    """
    Abstract interface for an advocate search backend.

    The HTTP layer depends on this protocol instead of talking to SQLite
    directly, so a degraded in-memory backend (or a remote engine) can be
    swapped in without touching the endpoint.
    """

    def search(self, params: SearchParams) -> SearchResult:
        """Execute one page of a search."""
        ...


class SqliteFtsBackend:
    """
    SearchBackend over the advocates table + advocates_fts (FTS5, porter).

    Runs one query per page: the filter predicate, the keyset predicate,
    ORDER BY created_at DESC, id DESC and LIMIT limit+1.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        register_functions(conn)

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    def cache_namespace(self) -> str:
        """Identify the database file so cache keys never cross databases."""
        try:
            row = self._conn.execute("PRAGMA database_list").fetchone()
        except sqlite3.Error:
            return f"sqlite:{id(self._conn)}"
        path = row[2] if row is not None else ""
        return f"sqlite:{path or id(self._conn)}"

    def search(self, params: SearchParams) -> SearchResult:
        conditions, sql_params = build_filter_conditions(params.filters)
        apply_keyset_pagination(params.cursor, conditions, sql_params)
        sql_params["fetch_limit"] = params.limit + 1

        sql = "SELECT a.* FROM advocates AS a"
        if conditions:
            sql += " WHERE " + " AND ".join(f"({c})" for c in conditions)
        sql += f" {ORDER_BY_SQL} LIMIT :fetch_limit"

        try:
            cur = self._conn.execute(sql, sql_params)
            rows = [row_to_advocate(_row_as_dict(cur, r)) for r in cur.fetchall()]
        except sqlite3.Error as err:
            raise SearchBackendError(f"advocate search failed: {err}") from err

        page, page_info = build_page(rows, params.limit)
        log.debug(
            "sqlite search returned %d rows (has_next=%s)",
            len(page),
            page_info.has_next_page,
        )
        return SearchResult(advocates=page, page_info=page_info)


def _row_as_dict(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    if isinstance(row, sqlite3.Row):
        return dict(row)
    cols = [desc[0] for desc in cursor.description]
    return dict(zip(cols, row, strict=False))


class InMemoryBackend:
    """
    Degraded-mode SearchBackend over rows already held in memory.

    Text matching uses the normalizer/stemmer from src.search.normalize, so
    results can differ slightly from FTS5 (substring semantics, no porter
    stemming). Ordering and keyset pagination are identical to
    SqliteFtsBackend.
    """

    def __init__(self, advocates: Iterable[dict[str, Any]]) -> None:
        self._advocates = sorted(advocates, key=sort_key, reverse=True)

    def search(self, params: SearchParams) -> SearchResult:
        rows = [a for a in self._advocates if _matches_filters(a, params.filters)]
        rows = [a for a in rows if after_cursor(a, params.cursor)]
        page, page_info = build_page(rows[: params.limit + 1], params.limit)
        return SearchResult(advocates=page, page_info=page_info)


def _contains_ci(haystack: Any, needle: str) -> bool:
    return needle.casefold() in str(haystack or "").casefold()


def _matches_filters(advocate: dict[str, Any], filters: AdvocateFilters) -> bool:
    q = _clean_text(filters.q)
    if q is not None and not _filter_by_term([advocate], q):
        return False

    city = _clean_text(filters.city)
    if city is not None and not _contains_ci(advocate.get("city"), city):
        return False

    degree = _clean_text(filters.degree)
    if degree is not None and not _contains_ci(advocate.get("degree"), degree):
        return False

    specialty = _clean_text(filters.specialty)
    if specialty is not None:
        term_norm = normalize_text(specialty)
        term_stem = stem_words(term_norm)
        tags = advocate.get("specialties") or []
        if not any(
            _contains_ci(tag, specialty) or text_matches(term_norm, term_stem, tag)
            for tag in tags
        ):
            return False

    years = advocate.get("yearsOfExperience", 0)
    min_years = _finite_or_none(filters.min_years)
    if min_years is not None and years < min_years:
        return False
    max_years = _finite_or_none(filters.max_years)
    return not (max_years is not None and years > max_years)
