# tests/test_timer.py

from __future__ import annotations

import asyncio

import pytest

from autopost.tasks.timer import RepeatingTimer


@pytest.mark.asyncio
async def test_first_tick_after_one_period() -> None:
    calls: list[int] = []
    timer = RepeatingTimer(0.05, lambda: calls.append(1)).start()

    await asyncio.sleep(0.02)
    assert calls == []
    await asyncio.sleep(0.1)
    assert len(calls) >= 1

    timer.cancel()
    await timer.wait_closed()


@pytest.mark.asyncio
async def test_cancel_is_idempotent_and_final() -> None:
    calls: list[int] = []
    timer = RepeatingTimer(0.01, lambda: calls.append(1)).start()
    await asyncio.sleep(0.05)

    timer.cancel()
    timer.cancel()
    await timer.wait_closed()
    assert timer.cancelled

    count = len(calls)
    await asyncio.sleep(0.05)
    assert len(calls) == count


@pytest.mark.asyncio
async def test_callback_errors_do_not_stop_ticks() -> None:
    calls: list[int] = []

    def flaky() -> None:
        calls.append(1)
        raise RuntimeError("tick failed")

    timer = RepeatingTimer(0.01, flaky).start()
    await asyncio.sleep(0.08)
    timer.cancel()
    await timer.wait_closed()

    assert len(calls) >= 3


def test_rejects_non_positive_period() -> None:
    with pytest.raises(ValueError):
        RepeatingTimer(0, lambda: None)
