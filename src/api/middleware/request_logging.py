# src/api/middleware/request_logging.py
"""
Request logging middleware for FastAPI.

Logs one line per request with method, path, status and elapsed time. For
GET /api/advocates the active filter names are included so slow or failing
searches can be traced back to their inputs.

Usage:
    from src.api.middleware.request_logging import RequestLoggingMiddleware

    app.add_middleware(RequestLoggingMiddleware)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger(__name__)

SEARCH_PATH = "/api/advocates"
SEARCH_FILTER_PARAMS = ("q", "city", "degree", "specialty", "minYears", "maxYears", "cursor")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs every request except health checks."""

    def __init__(self, app, *, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or [])
        self.exclude_paths.update({"/health", "/healthz", "/favicon.ico"})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.exclude_paths or request.method in {"OPTIONS", "HEAD"}:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)

        extra = ""
        if path == SEARCH_PATH:
            active = [name for name in SEARCH_FILTER_PARAMS if request.query_params.get(name)]
            extra = f" filters={','.join(active) or '-'}"

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        log.log(
            level,
            "%s %s -> %d (%dms)%s",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            extra,
        )
        return response
