# src/autopost/tasks/task_store.py

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path

from ..core.errors import StoreError
from ..db import SQLiteStore
from .delay import MAX_DELAY_MS
from .task_models import Embed, Task

logger = logging.getLogger(__name__)


def next_free_id(existing_ids: Iterable[int]) -> int:
    """Smallest positive integer not present in existing_ids."""
    taken = set(existing_ids)
    new_id = 1
    while new_id in taken:
        new_id += 1
    return new_id


class TaskStore(SQLiteStore):
    """
    SQLite store for recurring send tasks.

    Ids are gap-filling: a new task gets the smallest positive id not used by
    any existing row, so deleting task 2 out of {1, 2, 3} makes 2 available
    again. The id is chosen and inserted inside one write transaction.
    """

    def __init__(self, db_path: str | Path = "autopost.sqlite3") -> None:
        super().__init__(db_path)
        try:
            total = self.count_tasks()
        except StoreError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS auto_post_tasks (
                id INTEGER PRIMARY KEY,
                task_name TEXT NOT NULL DEFAULT '',
                message_text TEXT NOT NULL DEFAULT '',
                channel_id TEXT NOT NULL,
                delay_ms INTEGER NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 0,
                last_post_time REAL,
                created_at REAL NOT NULL
            )
            """
        )
        self._add_missing_columns(conn, "auto_post_tasks", {"embed": "TEXT"})
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_active ON auto_post_tasks(is_active)")

    @staticmethod
    def _embed_to_str(embed: Embed | None) -> str | None:
        if embed is None:
            return None
        return json.dumps(embed.to_dict(), ensure_ascii=False)

    @staticmethod
    def _str_to_embed(s: str | None) -> Embed | None:
        if not s:
            return None
        try:
            return Embed.from_dict(json.loads(s))
        except ValueError:
            logger.warning("Ignoring malformed embed JSON: %r", s)
            return None

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            name=str(row["task_name"] or ""),
            message=str(row["message_text"] or ""),
            destination=str(row["channel_id"]),
            period_ms=int(row["delay_ms"]),
            is_active=bool(row["is_active"]),
            created_at=float(row["created_at"] or 0.0),
            last_run_at=float(row["last_post_time"]) if row["last_post_time"] is not None else None,
            embed=self._str_to_embed(row["embed"]),
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM auto_post_tasks").fetchone()
            return int(n)

    def add_task(
        self,
        *,
        name: str,
        message: str,
        destination: str,
        period_ms: int,
        embed: Embed | None = None,
    ) -> int:
        if not destination or not destination.strip():
            raise ValueError("destination is required")
        if not 0 < int(period_ms) <= MAX_DELAY_MS:
            raise ValueError(f"period_ms must be in 1..{MAX_DELAY_MS}")

        now = time.time()
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            ids = [int(r["id"]) for r in conn.execute("SELECT id FROM auto_post_tasks ORDER BY id")]
            task_id = next_free_id(ids)
            conn.execute(
                """
                INSERT INTO auto_post_tasks(
                    id, task_name, message_text, channel_id, delay_ms,
                    is_active, last_post_time, created_at, embed
                )
                VALUES (?, ?, ?, ?, ?, 0, NULL, ?, ?)
                """,
                (
                    task_id,
                    name.strip(),
                    message,
                    destination.strip(),
                    int(period_ms),
                    now,
                    self._embed_to_str(embed),
                ),
            )
        logger.debug("Task added id=%s name=%s period_ms=%s", task_id, name, period_ms)
        return task_id

    def get_task(self, task_id: int) -> Task | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM auto_post_tasks WHERE id = ?", (int(task_id),)
            ).fetchone()
            return self._row_to_task(row) if row else None

    def list_tasks(self) -> list[Task]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM auto_post_tasks ORDER BY id").fetchall()
            return [self._row_to_task(r) for r in rows]

    def list_active_tasks(self) -> list[Task]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM auto_post_tasks WHERE is_active = 1 ORDER BY id"
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def set_task_active(self, task_id: int, active: bool) -> bool:
        """Returns False if no such task exists."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE auto_post_tasks SET is_active = ? WHERE id = ?",
                (1 if active else 0, int(task_id)),
            )
            return cur.rowcount == 1

    def set_task_last_run(self, task_id: int, ts: float | None = None) -> None:
        if ts is None:
            ts = time.time()
        with self._connect() as conn:
            conn.execute(
                "UPDATE auto_post_tasks SET last_post_time = ? WHERE id = ?",
                (float(ts), int(task_id)),
            )

    def delete_task(self, task_id: int) -> bool:
        """Returns False if there was nothing to delete."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM auto_post_tasks WHERE id = ?", (int(task_id),))
            return cur.rowcount == 1
