# src/autopost/tasks/task_api.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.errors import StoreError
from ..core.ports import TaskRepo
from .delay import format_delay, parse_delay
from .task_models import Embed, Task

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 50


def _preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    text = (text or "").replace("\n", " ")
    return text if len(text) <= limit else text[:limit] + "..."


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "never"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


async def create_task(
    task_store: TaskRepo,
    *,
    name: str,
    message: str,
    destination: str,
    delay: str,
    embed: Embed | None = None,
) -> int | None:
    """
    Create an (inactive) task from command input.

    The delay goes through parse_delay, so bad input falls back to one minute
    instead of failing. Returns the new id, or None if the store refused it.
    """
    period_ms = parse_delay(delay)
    try:
        task_id = await asyncio.to_thread(
            lambda: task_store.add_task(
                name=name,
                message=message,
                destination=destination,
                period_ms=period_ms,
                embed=embed,
            )
        )
    except (StoreError, ValueError):
        logger.exception("create_task failed name=%r destination=%r", name, destination)
        return None

    logger.info("New task created with id %s (every %s).", task_id, format_delay(period_ms))
    return task_id


def render_task_list(tasks: list[Task], running_ids: set[int] | None = None) -> str:
    if not tasks:
        return "No tasks stored."

    running_ids = running_ids or set()
    lines = ["=== AUTO POST TASKS ==="]
    for i, task in enumerate(tasks, start=1):
        status = "ACTIVE" if task.is_active else "INACTIVE"
        if task.is_active and task.id not in running_ids:
            status += " (not running)"
        lines.append(f"{i}. ID: {task.id} | Name: {task.name} | Status: {status}")
        lines.append(f"   Message: {_preview(task.message)}")
        if task.embed is not None:
            lines.append(f"   Embed: {_preview(task.embed.title)} / {_preview(task.embed.body)}")
        lines.append(f"   Destination: {task.destination}")
        lines.append(f"   Period: {task.period_ms}ms ({format_delay(task.period_ms)})")
        lines.append(f"   Last run: {_fmt_ts(task.last_run_at)}")
        lines.append("")
    return "\n".join(lines).rstrip()
