"""
infrastructure.persistence.thread_repo - SQLite thread repository.

Stores thread metadata (owner resource, title, timestamps).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from domain.entities import Thread
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteThreadRepository:
    """Async SQLite implementation of ThreadRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, thread: Thread) -> Thread:
        now = datetime.now().isoformat()
        thread_id = thread.thread_id or uuid4().hex
        async with self._conn.acquire() as conn:
            await conn.execute(
                """INSERT INTO threads
                   (thread_id, resource_id, title, metadata, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (thread_id, thread.resource_id, thread.title,
                 json.dumps(thread.metadata), now, now),
            )
        return Thread(
            thread_id=thread_id,
            resource_id=thread.resource_id,
            title=thread.title,
            metadata=dict(thread.metadata),
            created_at=now,
            updated_at=now,
        )

    async def get_by_id(self, thread_id: str) -> Optional[Thread]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM threads WHERE thread_id = ?",
                (thread_id,),
            )
            return self._row_to_entity(rows[0]) if rows else None

    async def get_by_resource(self, resource_id: str) -> list[Thread]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM threads
                   WHERE resource_id = ?
                   ORDER BY updated_at DESC, created_at DESC""",
                (resource_id,),
            )
            return [self._row_to_entity(r) for r in rows]

    async def update_title(self, thread_id: str, title: str) -> None:
        async with self._conn.acquire() as conn:
            await conn.execute(
                "UPDATE threads SET title = ?, updated_at = ? WHERE thread_id = ?",
                (title, datetime.now().isoformat(), thread_id),
            )

    async def touch(self, thread_id: str) -> None:
        async with self._conn.acquire() as conn:
            await conn.execute(
                "UPDATE threads SET updated_at = ? WHERE thread_id = ?",
                (datetime.now().isoformat(), thread_id),
            )

    @staticmethod
    def _row_to_entity(row) -> Thread:
        return Thread(
            thread_id=row["thread_id"],
            resource_id=row["resource_id"] or "",
            title=row["title"] or "",
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )
