# src/autopost/tasks/task_scheduler.py

from __future__ import annotations

"""
Recurring task scheduler.

Turns a stored task into a live, cancellable periodic send:
- start: fire once immediately, then every period
- stop/delete: cancel future ticks (in-flight sends are allowed to finish)
- resume_all: re-arm every task whose persisted active flag is set

The scheduler is the only owner of timer handles. Store calls run in worker
threads (asyncio.to_thread); the timer map is only touched after such a call
has returned, and never across an await, so a failed call leaves memory as it was.

Transport details (room lookup, formatting) belong to the messenger, not here.
"""

import asyncio
import logging
import time

from ..core.errors import OpResult, StoreError
from ..core.ports import OutboundMessenger, TaskRepo
from .task_models import Task
from .timer import RepeatingTimer

logger = logging.getLogger(__name__)


class TaskScheduler:
    def __init__(self, task_store: TaskRepo, messenger: OutboundMessenger) -> None:
        self._store = task_store
        self._messenger = messenger
        self._timers: dict[int, RepeatingTimer] = {}
        self._inflight: set[asyncio.Task[None]] = set()

    # ---- introspection ----

    def is_running(self, task_id: int) -> bool:
        return int(task_id) in self._timers

    def running_ids(self) -> list[int]:
        return sorted(self._timers)

    # ---- public operations ----

    async def start(self, task_id: int) -> OpResult:
        task_id = int(task_id)
        try:
            task = await asyncio.to_thread(self._store.get_task, task_id)
        except StoreError:
            logger.exception("start: get_task failed task_id=%s", task_id)
            return OpResult.STORE_FAILURE

        if task is None:
            logger.info("start: task %s not found", task_id)
            return OpResult.NOT_FOUND

        try:
            handle = await self._messenger.resolve_destination(task.destination)
        except Exception:
            logger.exception("start: resolve_destination failed task_id=%s", task_id)
            handle = None
        if handle is None:
            logger.warning("start: destination %s of task %s not found", task.destination, task_id)
            return OpResult.DESTINATION_NOT_FOUND

        try:
            updated = await asyncio.to_thread(self._store.set_task_active, task_id, True)
        except StoreError:
            logger.exception("start: set_task_active failed task_id=%s", task_id)
            return OpResult.STORE_FAILURE
        if not updated:
            logger.info("start: task %s vanished before it could be armed", task_id)
            return OpResult.NOT_FOUND

        # No awaits from here on: replacing the handle is atomic for the loop.
        previous = self._timers.pop(task_id, None)
        if previous is not None:
            previous.cancel()
            logger.debug("start: replaced running timer of task %s", task_id)

        self._fire(task, handle)
        timer = RepeatingTimer(
            task.period_ms / 1000.0,
            lambda: self._fire(task, handle),
            name=f"task-{task_id}",
        )
        self._timers[task_id] = timer.start()

        logger.info("Auto post for task %s (%s) started, every %sms.", task_id, task.name, task.period_ms)
        return OpResult.OK

    async def stop(self, task_id: int) -> OpResult:
        task_id = int(task_id)
        if task_id not in self._timers:
            logger.info("stop: task %s is not active", task_id)
            return OpResult.NOT_ACTIVE

        try:
            await asyncio.to_thread(self._store.set_task_active, task_id, False)
        except StoreError:
            logger.exception("stop: set_task_active failed task_id=%s", task_id)
            return OpResult.STORE_FAILURE

        timer = self._timers.pop(task_id, None)
        if timer is None:
            # Stopped concurrently while the store call was in flight.
            return OpResult.NOT_ACTIVE
        timer.cancel()
        logger.info("Auto post for task %s stopped.", task_id)
        return OpResult.OK

    async def delete(self, task_id: int) -> OpResult:
        task_id = int(task_id)
        await self.stop(task_id)
        try:
            existed = await asyncio.to_thread(self._store.delete_task, task_id)
        except StoreError:
            logger.exception("delete: delete_task failed task_id=%s", task_id)
            return OpResult.STORE_FAILURE
        logger.info("Task %s deleted (existed=%s).", task_id, existed)
        return OpResult.OK

    async def resume_all(self) -> int:
        """Re-arm every task flagged active in the store. Returns the number started."""
        try:
            tasks = await asyncio.to_thread(self._store.list_active_tasks)
        except StoreError:
            logger.exception("resume_all: list_active_tasks failed")
            return 0

        if not tasks:
            logger.info("No active tasks to resume.")
            return 0

        logger.info("Found %d active task(s), resuming...", len(tasks))
        started = 0
        for task in tasks:
            result = await self.start(task.id)
            if result.ok:
                started += 1
            else:
                logger.warning("resume_all: task %s not resumed (%s)", task.id, result.value)
        logger.info("Resumed %d/%d active task(s).", started, len(tasks))
        return started

    async def shutdown(self, timeout: float = 10.0) -> None:
        """
        Cancel every live timer, then wait (bounded) for sends already underway.

        Persisted active flags are left alone so the same tasks resume on the next start.
        """
        timers = list(self._timers.values())
        self._timers.clear()
        for timer in timers:
            timer.cancel()
        for timer in timers:
            await timer.wait_closed()

        pending = list(self._inflight)
        if pending:
            logger.info("Waiting for %d in-flight send(s)...", len(pending))
            _done, not_done = await asyncio.wait(pending, timeout=max(0.0, timeout))
            for t in not_done:
                t.cancel()
            if not_done:
                await asyncio.gather(*not_done, return_exceptions=True)
        logger.info("Task scheduler stopped (%d timer(s) cancelled).", len(timers))

    # ---- sending ----

    def _fire(self, task: Task, handle: object) -> None:
        """Hand one send off to its own asyncio task; never blocks the ticker."""
        t = asyncio.get_running_loop().create_task(self._send_once(task, handle))
        self._inflight.add(t)
        t.add_done_callback(self._inflight.discard)

    async def _send_once(self, task: Task, handle: object) -> None:
        # Tick boundary: nothing escapes from here, the timer must keep ticking.
        try:
            payload = task.payload()
            if payload.is_empty:
                logger.info("Task %s has no content to send.", task.id)
            else:
                await self._messenger.send(handle, payload)
                logger.debug("Message sent for task %s (%s).", task.id, task.name)

            await asyncio.to_thread(self._store.set_task_last_run, task.id, time.time())
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error sending message for task %s", task.id)
