"""
Shared exception classes used across the codebase.

This module centralizes common exceptions to avoid duplication
and ensure consistent error handling.
"""

from __future__ import annotations


class SearchBackendError(Exception):
    """
    Raised when the record store cannot answer a search.

    Examples:
        - SQLite database file missing or locked
        - Schema not applied (no advocates / advocates_fts tables)
        - Malformed FTS5 MATCH expression
    """

    pass


class SearchRequestError(Exception):
    """
    Raised by the client controller when the search endpoint answers with a
    non-2xx status or the request fails at the transport level.

    Cancellation of a superseded request is never reported through this
    exception.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "SearchBackendError",
    "SearchRequestError",
]
