# tests/test_pagination.py
from __future__ import annotations

import pytest

from src.search.pagination import (
    Cursor,
    after_cursor,
    build_page,
    clamp_limit,
    decode_cursor,
    encode_cursor,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 50),
        ("", 50),
        ("abc", 50),
        ("0", 1),
        (0, 1),
        ("-5", 1),
        ("99999", 200),
        ("2.9", 2),
        ("15", 15),
        ("nan", 50),
        ("inf", 50),
    ],
)
def test_clamp_limit(raw, expected: int) -> None:
    assert clamp_limit(raw, 50, 200) == expected


def test_cursor_encoding() -> None:
    assert encode_cursor(1735689600000, 42) == "1735689600000_42"
    assert decode_cursor("1735689600000_42") == Cursor(created_at_ms=1735689600000, id=42)
    # 64-bit edges still decode.
    assert decode_cursor(f"{2**63 - 1}_{-(2**63)}") == Cursor(2**63 - 1, -(2**63))


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "abc",
        "123",
        "1_2_3",
        "abc_1",
        "1_x",
        "_",
        "1.5_2",
        "99999999999999999999_1",
        "1_99999999999999999999",
        f"{-(2**63) - 1}_1",
    ],
)
def test_malformed_cursor_decodes_to_none(raw) -> None:
    # Silent fallback: a tampered or stale cursor restarts at the first page.
    assert decode_cursor(raw) is None


def _row(ms: int, row_id: int) -> dict:
    return {"id": row_id, "createdAtMs": ms}


def test_after_cursor_breaks_ties_on_id() -> None:
    cursor = Cursor(created_at_ms=1000, id=5)
    assert after_cursor(_row(999, 100), cursor)
    assert after_cursor(_row(1000, 4), cursor)
    assert not after_cursor(_row(1000, 5), cursor)
    assert not after_cursor(_row(1000, 6), cursor)
    assert not after_cursor(_row(1001, 1), cursor)
    assert after_cursor(_row(1, 1), None)


def test_build_page_trims_probe_row() -> None:
    rows = [_row(3000, 3), _row(2000, 2), _row(1000, 1)]
    page, info = build_page(rows, 2)
    assert [r["id"] for r in page] == [3, 2]
    assert info.has_next_page is True
    assert info.next_cursor == "2000_2"
    assert info.limit == 2


def test_build_page_last_page_has_no_cursor() -> None:
    page, info = build_page([_row(1000, 1)], 2)
    assert [r["id"] for r in page] == [1]
    assert info.to_dict() == {"nextCursor": None, "hasNextPage": False, "limit": 2}


def test_build_page_empty() -> None:
    page, info = build_page([], 10)
    assert page == []
    assert info.next_cursor is None
    assert info.has_next_page is False
