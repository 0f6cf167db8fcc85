# tests/test_search_backend.py
from __future__ import annotations

from types import SimpleNamespace

import pytest

from src.db import row_to_advocate
from src.exceptions import SearchBackendError
from src.search.backend import InMemoryBackend, SearchParams, SqliteFtsBackend
from src.search.pagination import decode_cursor
from src.search.query import AdvocateFilters


def _ids(result) -> list[int]:
    return [row["id"] for row in result.advocates]


def _search(backend, limit: int = 50, cursor: str | None = None, **filters):
    return backend.search(
        SearchParams(
            filters=AdvocateFilters(**filters),
            limit=limit,
            cursor=decode_cursor(cursor),
        )
    )


def _follow_all(backend, limit: int, **filters) -> list[int]:
    """Follow nextCursor until hasNextPage is false, collecting ids."""
    seen: list[int] = []
    cursor = None
    for _ in range(100):
        result = _search(backend, limit=limit, cursor=cursor, **filters)
        seen.extend(_ids(result))
        if not result.page_info.has_next_page:
            assert result.page_info.next_cursor is None
            return seen
        cursor = result.page_info.next_cursor
    raise AssertionError("pagination did not terminate")


@pytest.fixture
def sqlite_backend(memory_db: SimpleNamespace) -> SqliteFtsBackend:
    return SqliteFtsBackend(memory_db.conn)


def test_orders_newest_first(memory_db, sqlite_backend) -> None:
    ids = memory_db.seed_many(3)
    assert _ids(_search(sqlite_backend)) == list(reversed(ids))


def test_cursor_mode_three_pages(memory_db, sqlite_backend) -> None:
    ids = list(reversed(memory_db.seed_many(5)))

    first = _search(sqlite_backend, limit=2)
    assert _ids(first) == ids[:2]
    assert first.page_info.has_next_page is True
    assert first.page_info.next_cursor is not None

    second = _search(sqlite_backend, limit=2, cursor=first.page_info.next_cursor)
    assert _ids(second) == ids[2:4]
    assert second.page_info.has_next_page is True

    third = _search(sqlite_backend, limit=2, cursor=second.page_info.next_cursor)
    assert _ids(third) == ids[4:]
    assert third.page_info.has_next_page is False
    assert third.page_info.next_cursor is None


def test_cursor_pages_with_tied_timestamps_reproduce_full_order(memory_db, sqlite_backend) -> None:
    memory_db.seed_many(7, same_timestamp=True)
    unbounded = _ids(_search(sqlite_backend, limit=200))
    followed = _follow_all(sqlite_backend, limit=3)
    assert followed == unbounded
    assert len(set(followed)) == 7


def test_exact_multiple_of_limit_ends_cleanly(memory_db, sqlite_backend) -> None:
    memory_db.seed_many(4)
    first = _search(sqlite_backend, limit=2)
    second = _search(sqlite_backend, limit=2, cursor=first.page_info.next_cursor)
    assert len(second.advocates) == 2
    assert second.page_info.has_next_page is False
    assert second.page_info.next_cursor is None


def test_year_bounds_are_inclusive(memory_db, sqlite_backend) -> None:
    memory_db.seed_advocate(first_name="Two", years=2)
    five = memory_db.seed_advocate(first_name="Five", years=5)
    memory_db.seed_advocate(first_name="Nine", years=9)

    assert _ids(_search(sqlite_backend, min_years=3, max_years=8)) == [five]
    assert len(_search(sqlite_backend, min_years=2, max_years=9).advocates) == 3


def test_city_and_degree_are_case_insensitive_substrings(memory_db, sqlite_backend) -> None:
    austin = memory_db.seed_advocate(city="Austin", degree="PhD")
    memory_db.seed_advocate(city="Boston", degree="MD")

    assert _ids(_search(sqlite_backend, city="aus")) == [austin]
    assert _ids(_search(sqlite_backend, degree="phd")) == [austin]
    assert _ids(_search(sqlite_backend, degree="%")) == []


def test_substring_filters_ignore_case_beyond_ascii(memory_db, sqlite_backend) -> None:
    munich = memory_db.seed_advocate(
        city="München",
        degree="Ärztin",
        specialties=["Öffentliche Gesundheit"],
    )
    memory_db.seed_advocate(city="Austin")
    mem = InMemoryBackend(_rows_from(memory_db))

    for backend in (sqlite_backend, mem):
        assert _ids(_search(backend, city="MÜNCHEN")) == [munich]
        assert _ids(_search(backend, degree="ÄRZT")) == [munich]
        assert _ids(_search(backend, specialty="ÖFFENTLICHE GES")) == [munich]


def test_text_query_uses_stemming_across_fields(memory_db, sqlite_backend) -> None:
    eating = memory_db.seed_advocate(
        first_name="Jane",
        last_name="Smith",
        specialties=["Eating disorders"],
    )
    memory_db.seed_advocate(first_name="John", last_name="Doe", specialties=["Bipolar"])

    assert _ids(_search(sqlite_backend, q="disorder")) == [eating]
    assert _ids(_search(sqlite_backend, q="Disorders")) == [eating]
    assert _ids(_search(sqlite_backend, q="jane smith")) == [eating]
    # Every token must match.
    assert _ids(_search(sqlite_backend, q="jane doe")) == []


def test_text_query_folds_diacritics(memory_db, sqlite_backend) -> None:
    renee = memory_db.seed_advocate(first_name="Renée", last_name="Núñez")
    assert _ids(_search(sqlite_backend, q="renee nunez")) == [renee]


def test_specialty_substring_fallback_catches_partial_words(memory_db, sqlite_backend) -> None:
    peds = memory_db.seed_advocate(specialties=["Pediatrics"])
    memory_db.seed_advocate(specialties=["Bipolar"])

    assert _ids(_search(sqlite_backend, specialty="pediat")) == [peds]
    # Full-text alone matches whole (stemmed) tokens only.
    assert _ids(_search(sqlite_backend, q="pediat")) == []


def test_specialty_phrase_with_ampersand(memory_db, sqlite_backend) -> None:
    trauma = memory_db.seed_advocate(specialties=["Trauma & PTSD", "Sleep issues"])
    memory_db.seed_advocate(specialties=["Bipolar"])

    assert _ids(_search(sqlite_backend, specialty="Trauma & PTSD")) == [trauma]
    assert _ids(_search(sqlite_backend, q="trauma & ptsd")) == [trauma]


def test_filters_apply_before_pagination(memory_db, sqlite_backend) -> None:
    for i in range(6):
        memory_db.seed_advocate(
            city="Austin" if i % 2 == 0 else "Denver",
            created_at_ms=1_000 + i,
        )
    followed = _follow_all(sqlite_backend, limit=1, city="austin")
    assert len(followed) == 3


def test_idempotent_repeat(memory_db, sqlite_backend) -> None:
    memory_db.seed_many(5)
    a = _search(sqlite_backend, limit=2, city="austin", q="jane")
    b = _search(sqlite_backend, limit=2, city="austin", q="jane")
    assert a == b


def test_sqlite_errors_become_backend_errors(memory_db, sqlite_backend) -> None:
    memory_db.seed_advocate()
    memory_db.conn.execute("DROP TABLE advocates_fts")
    with pytest.raises(SearchBackendError):
        _search(sqlite_backend, q="jane")


# ---------------------------------------------------------------------------
# InMemoryBackend (degraded mode)
# ---------------------------------------------------------------------------


def _rows_from(memory_db) -> list[dict]:
    cur = memory_db.conn.execute("SELECT * FROM advocates")
    return [row_to_advocate(dict(r)) for r in cur.fetchall()]


def test_in_memory_backend_matches_sqlite_order_and_pages(memory_db, sqlite_backend) -> None:
    memory_db.seed_many(6, same_timestamp=True)
    mem = InMemoryBackend(_rows_from(memory_db))

    assert _follow_all(mem, limit=4) == _follow_all(sqlite_backend, limit=4)


def test_in_memory_backend_filters(memory_db) -> None:
    a = memory_db.seed_advocate(city="Austin", specialties=["Eating disorders"], years=2)
    b = memory_db.seed_advocate(city="Boston", specialties=["Pediatrics"], years=5)
    c = memory_db.seed_advocate(city="Denver", specialties=["Bipolar"], years=9)
    mem = InMemoryBackend(_rows_from(memory_db))

    assert _ids(_search(mem, q="disorder")) == [a]
    assert _ids(_search(mem, specialty="pediat")) == [b]
    assert _ids(_search(mem, city="DEN")) == [c]
    assert _ids(_search(mem, min_years=3, max_years=8)) == [b]
    assert sorted(_ids(_search(mem, degree="md"))) == sorted([a, b, c])
