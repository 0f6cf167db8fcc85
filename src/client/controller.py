# src/client/controller.py
"""
Client-side search controller for GET /api/advocates.

Owns the per-session search state: debounced filter inputs, the in-flight
request task, the loaded rows and the keyset cursor for "load more".

State machine:

    idle -> loading -> loaded | error
    loaded -> loadingMore -> loaded | error
    any -> loading          (a settled filter change restarts from page one)

Last request wins: starting a new first-page search cancels the previous
task, and a generation counter drops any response that arrives for a
superseded search. Cancellation is never reported as an error.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

import httpx

from src.config import CLIENT_DEBOUNCE_MS, SEARCH_DEFAULT_LIMIT
from src.exceptions import SearchRequestError
from src.search.normalize import filter_advocates

from .debounce import DebouncedValue

log = logging.getLogger(__name__)

FILTER_FIELDS = ("q", "city", "degree", "specialty", "minYears", "maxYears")
SEARCH_PATH = "/api/advocates"


class SearchState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_MORE = "loadingMore"
    ERROR = "error"


class AdvocateSearchController:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        limit: int = SEARCH_DEFAULT_LIMIT,
        debounce_ms: int = CLIENT_DEBOUNCE_MS,
        path: str = SEARCH_PATH,
    ) -> None:
        self._client = client
        self._path = path
        self.limit = limit
        self.debounce_s = debounce_ms / 1000

        self._fields: dict[str, DebouncedValue[str]] = {
            name: DebouncedValue(name, "", self.debounce_s, self._on_filter_settled)
            for name in FILTER_FIELDS
        }

        self.state = SearchState.IDLE
        self.advocates: list[dict[str, Any]] = []
        self.next_cursor: str | None = None
        self.has_next_page = False
        self.error: str | None = None

        self._generation = 0
        self._restart_scheduled = False
        self._search_task: asyncio.Task[None] | None = None
        self._more_task: asyncio.Task[None] | None = None

    # ---- filters ---------------------------------------------------------------

    @property
    def filters(self) -> dict[str, str]:
        """Settled (debounced) filter values that the current results reflect."""
        return {name: field.value for name, field in self._fields.items()}

    def set_filter(self, name: str, value: str | None) -> None:
        if name not in self._fields:
            raise KeyError(f"unknown filter {name!r}; expected one of {FILTER_FIELDS}")
        self._fields[name].set((value or "").strip())

    def update_filters(self, **patch: str | None) -> None:
        for name, value in patch.items():
            self.set_filter(name, value)

    def reset_filters(self) -> None:
        for name in FILTER_FIELDS:
            self.set_filter(name, "")

    def flush_filters(self) -> None:
        """Settle every pending filter now (e.g. on Enter) instead of waiting."""
        for field in self._fields.values():
            field.flush()

    def _on_filter_settled(self, name: str, value: str) -> None:
        log.debug("filter %s settled to %r", name, value)
        if self._restart_scheduled:
            return
        # Several fields may settle in the same tick; restart once.
        self._restart_scheduled = True
        asyncio.get_running_loop().call_soon(self._restart_from_callback)

    def _restart_from_callback(self) -> None:
        self._restart_scheduled = False
        self._start_search()

    def _query_params(self, cursor: str | None = None) -> dict[str, str]:
        params = {"limit": str(self.limit)}
        for name, value in self.filters.items():
            if value:
                params[name] = value
        if cursor:
            params["cursor"] = cursor
        return params

    # ---- requests --------------------------------------------------------------

    async def _request(self, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._client.get(
                self._path,
                params=params,
                headers={"Cache-Control": "no-store"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            status = err.response.status_code
            raise SearchRequestError(f"Request failed: {status}", status) from err
        except (httpx.HTTPError, httpx.InvalidURL) as err:
            raise SearchRequestError(f"Request failed: {err}") from err

        try:
            payload = response.json()
        except ValueError as err:
            raise SearchRequestError("Request failed: invalid JSON body") from err

        if (
            not isinstance(payload, dict)
            or not isinstance(payload.get("data"), list)
            or not isinstance(payload.get("pageInfo"), dict)
        ):
            raise SearchRequestError("Request failed: unexpected response shape")
        return payload

    def _apply_page(self, payload: dict[str, Any], *, append: bool) -> None:
        rows = payload["data"]
        page_info = payload["pageInfo"]
        self.advocates = self.advocates + rows if append else list(rows)
        self.next_cursor = page_info.get("nextCursor")
        self.has_next_page = bool(page_info.get("hasNextPage"))
        self.error = None
        self.state = SearchState.LOADED

    def _cancel_tasks(self) -> None:
        for task in (self._search_task, self._more_task):
            if task is not None and not task.done():
                task.cancel()

    def _start_search(self) -> asyncio.Task[None]:
        self._generation += 1
        self._cancel_tasks()
        self.state = SearchState.LOADING
        self.error = None
        task = asyncio.create_task(self._fetch_first_page(self._generation, self._query_params()))
        self._search_task = task
        return task

    def _failure_message(self, err: Exception, what: str) -> str:
        if isinstance(err, SearchRequestError):
            log.warning("advocate %s failed: %s", what, err)
            return str(err)
        # Anything outside the expected transport/status failures still ends
        # the load in the error state instead of leaving it in flight.
        log.exception("advocate %s failed unexpectedly", what)
        return f"Request failed: {err.__class__.__name__}"

    async def _fetch_first_page(self, generation: int, params: dict[str, str]) -> None:
        try:
            payload = await self._request(params)
        except asyncio.CancelledError:
            # Superseded by a newer search; that search owns the state now.
            log.debug("search generation %d cancelled", generation)
            raise
        except Exception as err:
            if generation != self._generation:
                return
            self.error = self._failure_message(err, "search")
            self.advocates = []
            self.next_cursor = None
            self.has_next_page = False
            self.state = SearchState.ERROR
            return

        if generation != self._generation:
            return
        self._apply_page(payload, append=False)

    async def _fetch_more(self, generation: int, params: dict[str, str]) -> None:
        try:
            payload = await self._request(params)
        except asyncio.CancelledError:
            log.debug("load-more for generation %d cancelled", generation)
            raise
        except Exception as err:
            if generation != self._generation:
                return
            # Keep the rows already shown; the user can retry load_more().
            self.error = self._failure_message(err, "load-more")
            self.state = SearchState.ERROR
            return

        if generation != self._generation:
            return
        self._apply_page(payload, append=True)

    # ---- public actions --------------------------------------------------------

    async def search(self) -> None:
        """Fetch the first page for the current settled filters and wait for it."""
        task = self._start_search()
        await asyncio.wait({task})

    async def load_more(self) -> None:
        """
        Append the next page using the last cursor.

        No-op when there is no next page or a load is already in flight.
        """
        if not self.has_next_page or not self.next_cursor:
            return
        if self.state in (SearchState.LOADING, SearchState.LOADING_MORE):
            return

        self.state = SearchState.LOADING_MORE
        params = self._query_params(cursor=self.next_cursor)
        task = asyncio.create_task(self._fetch_more(self._generation, params))
        self._more_task = task
        await asyncio.wait({task})

    async def wait_idle(self) -> None:
        """Wait until no filter is pending and no request is in flight."""
        while True:
            await asyncio.sleep(0)
            if any(field.pending() for field in self._fields.values()):
                await asyncio.sleep(self.debounce_s or 0.001)
                continue
            if self._restart_scheduled:
                continue
            tasks = {t for t in (self._search_task, self._more_task) if t is not None and not t.done()}
            if not tasks:
                return
            await asyncio.wait(tasks)

    def filter_loaded(self, term: str | None) -> list[dict[str, Any]]:
        """Client-side filter of the rows already loaded (no request)."""
        return [dict(a) for a in filter_advocates(self.advocates, term)]

    async def aclose(self) -> None:
        for field in self._fields.values():
            field.cancel()
        self._cancel_tasks()
        tasks = {t for t in (self._search_task, self._more_task) if t is not None}
        if tasks:
            await asyncio.wait(tasks)

    async def __aenter__(self) -> AdvocateSearchController:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
