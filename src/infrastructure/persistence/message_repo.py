"""
infrastructure.persistence.message_repo - SQLite message repository.

Messages are append-only; the autoincrement id gives the in-thread order.
"""

from __future__ import annotations

import logging
from datetime import datetime

from domain.entities import Message
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteMessageRepository:
    """Async SQLite implementation of MessageRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, message: Message) -> Message:
        now = datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO messages
                   (thread_id, resource_id, role, content, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (message.thread_id, message.resource_id,
                 message.role, message.content, now),
            )
            message_id = cursor.lastrowid
        return Message(
            id=message_id,
            thread_id=message.thread_id,
            resource_id=message.resource_id,
            role=message.role,
            content=message.content,
            created_at=now,
        )

    async def get_last(self, thread_id: str, limit: int) -> list[Message]:
        """Return the last *limit* messages of a thread, oldest first."""
        if limit <= 0:
            return []
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM messages
                   WHERE thread_id = ?
                   ORDER BY id DESC
                   LIMIT ?""",
                (thread_id, limit),
            )
            return [self._row_to_entity(r) for r in reversed(list(rows))]

    async def get_by_ids(self, message_ids: list[int]) -> list[Message]:
        if not message_ids:
            return []
        placeholders = ", ".join("?" for _ in message_ids)
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                f"SELECT * FROM messages WHERE id IN ({placeholders}) ORDER BY id ASC",
                tuple(message_ids),
            )
            return [self._row_to_entity(r) for r in rows]

    async def get_window(
        self, message: Message, before: int, after: int,
    ) -> list[Message]:
        """Return *message* surrounded by its thread neighbours, oldest first."""
        async with self._conn.acquire() as conn:
            preceding = await conn.execute_fetchall(
                """SELECT * FROM messages
                   WHERE thread_id = ? AND id < ?
                   ORDER BY id DESC
                   LIMIT ?""",
                (message.thread_id, message.id, max(before, 0)),
            )
            following = await conn.execute_fetchall(
                """SELECT * FROM messages
                   WHERE thread_id = ? AND id > ?
                   ORDER BY id ASC
                   LIMIT ?""",
                (message.thread_id, message.id, max(after, 0)),
            )
        return [
            *(self._row_to_entity(r) for r in reversed(list(preceding))),
            message,
            *(self._row_to_entity(r) for r in following),
        ]

    @staticmethod
    def _row_to_entity(row) -> Message:
        return Message(
            id=row["id"],
            thread_id=row["thread_id"] or "",
            resource_id=row["resource_id"] or "",
            role=row["role"] or "",
            content=row["content"] or "",
            created_at=row["created_at"] or "",
        )
