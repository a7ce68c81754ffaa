"""Durable queue of user notifications awaiting delivery to the store."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import aiosqlite

from .enums import OutboxStatus

logger = logging.getLogger(__name__)


class NotificationOutbox:
    """
    SQLite-backed outbox for notification writes.

    A notification is queued before it is sent so that a failed send can be
    retried later without repeating the report status update that preceded
    it. There is at most one open (pending or failed) row per user/report
    pair; queuing again replaces that row's payload.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the database and create the table."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        try:
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute("PRAGMA busy_timeout=5000")
            await self._connection.commit()
        except aiosqlite.Error as exc:
            logger.debug("Outbox pragmas not applied: %s", exc)
        await self._create_tables()

    async def close(self) -> None:
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _create_tables(self) -> None:
        async with self._lock:
            await self._connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS pending_notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    report_id TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    attempts INTEGER NOT NULL DEFAULT 0,
                    last_error TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    sent_at TIMESTAMP
                );
                CREATE INDEX IF NOT EXISTS idx_pending_notifications_status
                    ON pending_notifications(status, id);
                """
            )
            await self._connection.commit()

    async def enqueue(self, user_id: str, report_id: str, payload: dict) -> int:
        """Queue a notification; returns the outbox row id."""
        user_value = str(user_id or "").strip()
        report_value = str(report_id or "").strip()
        if not user_value or not report_value:
            raise ValueError("user_id and report_id are required")

        encoded = json.dumps(payload)
        async with self._lock:
            cursor = await self._connection.execute(
                """
                SELECT id FROM pending_notifications
                WHERE user_id = ? AND report_id = ? AND status IN (?, ?)
                ORDER BY id DESC
                LIMIT 1
                """,
                (user_value, report_value, OutboxStatus.PENDING.value, OutboxStatus.FAILED.value),
            )
            row = await cursor.fetchone()
            if row:
                entry_id = int(row["id"])
                await self._connection.execute(
                    "UPDATE pending_notifications SET payload = ?, status = ? WHERE id = ?",
                    (encoded, OutboxStatus.PENDING.value, entry_id),
                )
            else:
                cursor = await self._connection.execute(
                    """
                    INSERT INTO pending_notifications (user_id, report_id, payload, status)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user_value, report_value, encoded, OutboxStatus.PENDING.value),
                )
                entry_id = int(cursor.lastrowid)
            await self._connection.commit()
        return entry_id

    async def mark_sent(self, entry_id: int) -> None:
        async with self._lock:
            await self._connection.execute(
                """
                UPDATE pending_notifications
                SET status = ?, attempts = attempts + 1, last_error = NULL, sent_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (OutboxStatus.SENT.value, int(entry_id)),
            )
            await self._connection.commit()

    async def mark_failed(self, entry_id: int, error: str) -> None:
        async with self._lock:
            await self._connection.execute(
                """
                UPDATE pending_notifications
                SET status = ?, attempts = attempts + 1, last_error = ?
                WHERE id = ?
                """,
                (OutboxStatus.FAILED.value, error, int(entry_id)),
            )
            await self._connection.commit()

    async def get_pending(self, limit: int = 50) -> list[dict]:
        """Open entries (pending or failed), oldest first, with decoded payloads."""
        limit = max(1, min(int(limit), 500))
        async with self._lock:
            cursor = await self._connection.execute(
                """
                SELECT id, user_id, report_id, payload, status, attempts, last_error
                FROM pending_notifications
                WHERE status IN (?, ?)
                ORDER BY id ASC
                LIMIT ?
                """,
                (OutboxStatus.PENDING.value, OutboxStatus.FAILED.value, limit),
            )
            rows = await cursor.fetchall()
        entries = []
        for row in rows:
            entry = dict(row)
            entry["payload"] = json.loads(entry["payload"])
            entries.append(entry)
        return entries

    async def count_pending(self) -> int:
        async with self._lock:
            cursor = await self._connection.execute(
                "SELECT COUNT(*) AS count FROM pending_notifications WHERE status IN (?, ?)",
                (OutboxStatus.PENDING.value, OutboxStatus.FAILED.value),
            )
            row = await cursor.fetchone()
        return int(row["count"]) if row else 0

    async def get_entry(self, entry_id: int) -> dict | None:
        async with self._lock:
            cursor = await self._connection.execute(
                "SELECT * FROM pending_notifications WHERE id = ?",
                (int(entry_id),),
            )
            row = await cursor.fetchone()
        if not row:
            return None
        entry = dict(row)
        entry["payload"] = json.loads(entry["payload"])
        return entry
