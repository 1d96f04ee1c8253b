# src/autopost/responders/responder_store.py

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path

from ..core.errors import StoreError
from ..db import SQLiteStore
from .responder_models import Responder, normalize_aliases

logger = logging.getLogger(__name__)


class ResponderStore(SQLiteStore):
    """
    SQLite store for keyword responders.

    Aliases are kept as a JSON list so their declaration order survives.
    Ids come from SQLite itself (no gap filling).
    """

    def __init__(self, db_path: str | Path = "autopost.sqlite3") -> None:
        super().__init__(db_path)
        try:
            total = len(self.list_responders())
        except StoreError:
            total = -1
        logger.info("ResponderStore ready db=%s total=%s", self._db_path, total)

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS auto_responders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                aliases TEXT NOT NULL DEFAULT '[]',
                response_text TEXT NOT NULL DEFAULT '',
                channel_id TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at REAL NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_responders_active ON auto_responders(is_active, channel_id)"
        )

    @staticmethod
    def _str_to_aliases(s: str | None) -> tuple[str, ...]:
        if not s:
            return ()
        try:
            val = json.loads(s)
        except ValueError:
            logger.warning("Ignoring malformed aliases JSON: %r", s)
            return ()
        if not isinstance(val, list):
            return ()
        return normalize_aliases([str(a) for a in val])

    def _row_to_responder(self, row: sqlite3.Row) -> Responder:
        return Responder(
            id=int(row["id"]),
            aliases=self._str_to_aliases(row["aliases"]),
            response=str(row["response_text"] or ""),
            destination=str(row["channel_id"]),
            is_active=bool(row["is_active"]),
            created_at=float(row["created_at"] or 0.0),
        )

    # ---- public API ----

    def add_responder(
        self,
        *,
        aliases: list[str] | tuple[str, ...],
        response: str,
        destination: str,
    ) -> Responder:
        """Insert an active responder and return the stored record."""
        clean = normalize_aliases(aliases)
        if not clean:
            raise ValueError("at least one alias is required")
        if not response or not response.strip():
            raise ValueError("response is required")
        if not destination or not destination.strip():
            raise ValueError("destination is required")

        now = time.time()
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO auto_responders(aliases, response_text, channel_id, is_active, created_at)
                VALUES (?, ?, ?, 1, ?)
                """,
                (json.dumps(list(clean), ensure_ascii=False), response, destination.strip(), now),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise StoreError("SQLite did not return lastrowid for responder insert")

        responder = Responder(
            id=int(rowid),
            aliases=clean,
            response=response,
            destination=destination.strip(),
            is_active=True,
            created_at=now,
        )
        logger.debug("Responder added id=%s aliases=%s", responder.id, clean)
        return responder

    def get_responder(self, responder_id: int) -> Responder | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM auto_responders WHERE id = ?", (int(responder_id),)
            ).fetchone()
            return self._row_to_responder(row) if row else None

    def list_responders(self) -> list[Responder]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM auto_responders ORDER BY id").fetchall()
            return [self._row_to_responder(r) for r in rows]

    def list_active_responders(self) -> list[Responder]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM auto_responders WHERE is_active = 1 ORDER BY id"
            ).fetchall()
            return [self._row_to_responder(r) for r in rows]

    def set_responder_active(self, responder_id: int, active: bool) -> bool:
        """Returns False if no such responder exists."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE auto_responders SET is_active = ? WHERE id = ?",
                (1 if active else 0, int(responder_id)),
            )
            return cur.rowcount == 1

    def delete_responder(self, responder_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM auto_responders WHERE id = ?", (int(responder_id),))
            return cur.rowcount == 1
