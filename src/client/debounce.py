# src/client/debounce.py
"""
asyncio debounce helpers.

- Debouncer: delay a callback until calls have been quiet for `delay` seconds.
- DebouncedValue: hold a "settled" copy of a changing value and notify when
  the settled value actually changes.

Both schedule timers on the running event loop (loop.call_later), so they
must be used from inside a coroutine or loop callback.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Debouncer:
    """Trailing-edge debounce of a plain (sync) callback."""

    def __init__(self, callback: Callable[..., Any], delay: float) -> None:
        self._callback = callback
        self.delay = max(0.0, float(delay))
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] = ()

    def __call__(self, *args: Any) -> None:
        self._args = args
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        args, self._args = self._args, ()
        self._callback(*args)

    def pending(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._args = ()

    def flush(self) -> None:
        """Run a pending call right now instead of waiting for the timer."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()


class DebouncedValue(Generic[T]):
    """
    A value that only settles after it stops changing for `delay` seconds.

    on_change(name, value) fires when the settled value differs from the
    previous settled value.
    """

    def __init__(
        self,
        name: str,
        initial: T,
        delay: float,
        on_change: Callable[[str, T], None],
    ) -> None:
        self.name = name
        self.value: T = initial
        self._on_change = on_change
        self._debouncer = Debouncer(self._commit, delay)

    def set(self, value: T) -> None:
        self._debouncer(value)

    def _commit(self, value: T) -> None:
        if value == self.value:
            return
        self.value = value
        self._on_change(self.name, value)

    def pending(self) -> bool:
        return self._debouncer.pending()

    def flush(self) -> None:
        self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()
