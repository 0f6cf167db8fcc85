# tests/test_debounce.py
from __future__ import annotations

import asyncio

from src.client.debounce import DebouncedValue, Debouncer


def test_debouncer_fires_once_with_last_args() -> None:
    calls: list[tuple] = []

    async def scenario() -> None:
        debounced = Debouncer(lambda *args: calls.append(args), delay=0.02)
        debounced("a")
        debounced("ab")
        debounced("abc")
        assert debounced.pending()
        await asyncio.sleep(0.06)
        assert not debounced.pending()

    asyncio.run(scenario())
    assert calls == [("abc",)]


def test_debouncer_flush_and_cancel() -> None:
    calls: list[tuple] = []

    async def scenario() -> None:
        debounced = Debouncer(lambda *args: calls.append(args), delay=10)
        debounced(1)
        debounced.flush()
        debounced(2)
        debounced.cancel()
        await asyncio.sleep(0)
        # Flushing with nothing pending is a no-op.
        debounced.flush()

    asyncio.run(scenario())
    assert calls == [(1,)]


def test_debounced_value_notifies_only_on_change() -> None:
    changes: list[tuple[str, str]] = []

    async def scenario() -> DebouncedValue[str]:
        value = DebouncedValue("city", "", 0.01, lambda name, v: changes.append((name, v)))
        value.set("Aus")
        value.set("Austin")
        await asyncio.sleep(0.04)
        # Typing and deleting back to the settled value is not a change.
        value.set("Austinx")
        value.set("Austin")
        await asyncio.sleep(0.04)
        return value

    value = asyncio.run(scenario())
    assert changes == [("city", "Austin")]
    assert value.value == "Austin"
