# src/search/__init__.py
"""
Advocate search: query building, keyset pagination and text matching.

The /api/advocates endpoint calls into a SearchBackend (SQLite FTS5 by
default, or the in-memory degraded backend) instead of talking to the
database directly, so the store can be swapped out later.
"""

from .backend import (
    InMemoryBackend,
    SearchBackend,
    SearchParams,
    SearchResult,
    SqliteFtsBackend,
)
from .normalize import filter_advocates, normalize_text, stem_words
from .pagination import Cursor, PageInfo, clamp_limit, decode_cursor, encode_cursor
from .query import AdvocateFilters, build_filter_conditions

__all__ = [
    "AdvocateFilters",
    "build_filter_conditions",
    "Cursor",
    "PageInfo",
    "clamp_limit",
    "decode_cursor",
    "encode_cursor",
    "SearchBackend",
    "SearchParams",
    "SearchResult",
    "SqliteFtsBackend",
    "InMemoryBackend",
    "filter_advocates",
    "normalize_text",
    "stem_words",
]
