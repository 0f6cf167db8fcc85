from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

log = logging.getLogger(__name__)

CURSOR_SEPARATOR = "_"
SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


@dataclass(frozen=True)
class Cursor:
    """Keyset position: the (created_at, id) of the last row already returned."""

    created_at_ms: int
    id: int

    def encode(self) -> str:
        return f"{self.created_at_ms}{CURSOR_SEPARATOR}{self.id}"


@dataclass
class PageInfo:
    next_cursor: str | None
    has_next_page: bool
    limit: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "nextCursor": self.next_cursor,
            "hasNextPage": self.has_next_page,
            "limit": self.limit,
        }


def encode_cursor(created_at_ms: int, row_id: int) -> str:
    return Cursor(int(created_at_ms), int(row_id)).encode()


def decode_cursor(raw: str | None) -> Cursor | None:
    """
    Decode "<epochMillis>_<id>" into a Cursor.

    Anything malformed decodes to None, which callers treat as "no cursor"
    (pagination restarts at the first page instead of erroring).
    """
    if raw is None:
        return None
    token = raw.strip()
    if not token:
        return None

    parts = token.split(CURSOR_SEPARATOR)
    if len(parts) != 2:
        log.warning("ignoring malformed cursor %r", raw)
        return None
    try:
        created_at_ms = int(parts[0])
        row_id = int(parts[1])
    except ValueError:
        log.warning("ignoring malformed cursor %r", raw)
        return None
    # SQLite binds signed 64-bit integers only.
    if not all(SQLITE_INT_MIN <= v <= SQLITE_INT_MAX for v in (created_at_ms, row_id)):
        log.warning("ignoring out-of-range cursor %r", raw)
        return None
    return Cursor(created_at_ms=created_at_ms, id=row_id)


def clamp_limit(raw: Any, default: int, max_limit: int) -> int:
    """
    Parse a page size and clamp it to [1, max_limit].

    Missing or unparseable input falls back to default; 0 and negatives
    become 1, oversized values become max_limit.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        value = default
    else:
        try:
            num = float(raw)
        except (TypeError, ValueError):
            num = float(default)
        value = math.floor(num) if math.isfinite(num) else default
    return max(1, min(max_limit, int(value)))


def apply_keyset_pagination(
    cursor: Cursor | None,
    conditions: list[str],
    sql_params: dict[str, Any],
) -> None:
    """Strict keyset exclusion consistent with ORDER BY created_at DESC, id DESC."""
    if cursor is None:
        return
    sql_params["cursor_created_at"] = cursor.created_at_ms
    sql_params["cursor_id"] = cursor.id
    conditions.append(
        """
        a.created_at < :cursor_created_at
        OR (a.created_at = :cursor_created_at AND a.id < :cursor_id)
        """.strip(),
    )


ORDER_BY_SQL = "ORDER BY a.created_at DESC, a.id DESC"


def sort_key(row: dict[str, Any]) -> tuple[int, int]:
    return int(row["createdAtMs"]), int(row["id"])


def after_cursor(row: dict[str, Any], cursor: Cursor | None) -> bool:
    """Python twin of apply_keyset_pagination for in-memory rows."""
    if cursor is None:
        return True
    return sort_key(row) < (cursor.created_at_ms, cursor.id)


def build_page(
    rows: Sequence[dict[str, Any]],
    limit: int,
) -> tuple[list[dict[str, Any]], PageInfo]:
    """
    Trim a limit+1 fetch down to one page and derive its PageInfo.

    The extra row only signals that another page exists; next_cursor always
    points at the last row actually returned.
    """
    page = list(rows[:limit])
    has_next_page = len(rows) > limit
    next_cursor: str | None = None
    if has_next_page and page:
        last = page[-1]
        next_cursor = encode_cursor(last["createdAtMs"], last["id"])
    return page, PageInfo(next_cursor=next_cursor, has_next_page=has_next_page, limit=limit)


__all__ = [
    "Cursor",
    "PageInfo",
    "encode_cursor",
    "decode_cursor",
    "clamp_limit",
    "apply_keyset_pagination",
    "after_cursor",
    "build_page",
    "sort_key",
    "ORDER_BY_SQL",
]
