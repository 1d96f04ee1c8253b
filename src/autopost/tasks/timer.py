# src/autopost/tasks/timer.py

from __future__ import annotations

"""
Cancellable repeating timer on the running asyncio loop.

The first tick happens one period after arming; a caller that wants
"fire now, then every period" does the immediate call itself. Ticks follow a
fixed cadence measured from arming, so a slow callback does not push later
ticks back. The callback is synchronous: anything slow should be handed off
(e.g. asyncio.create_task) so the ticker never waits on it.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RepeatingTimer:
    def __init__(self, period_s: float, callback: Callable[[], None], *, name: str = "timer") -> None:
        if period_s <= 0:
            raise ValueError("period_s must be positive")
        self._period_s = float(period_s)
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self.ticks = 0

    @property
    def period_s(self) -> float:
        return self._period_s

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> RepeatingTimer:
        """Arm the timer. Must be called from inside the event loop."""
        if self._task is not None:
            raise RuntimeError(f"{self._name} already started")
        if self._cancelled:
            raise RuntimeError(f"{self._name} was cancelled")
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        return self

    def cancel(self) -> None:
        """Stop future ticks. Idempotent; work already handed off keeps running."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self._period_s
        while not self._cancelled:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if self._cancelled:
                break
            self.ticks += 1
            try:
                self._callback()
            except Exception:
                logger.exception("%s: tick callback failed", self._name)
            next_at += self._period_s
            # Fell far behind (suspended process, blocked loop): skip the missed ticks.
            now = loop.time()
            if next_at < now:
                missed = int((now - next_at) // self._period_s) + 1
                next_at += missed * self._period_s
