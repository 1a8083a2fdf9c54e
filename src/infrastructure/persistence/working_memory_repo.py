"""
infrastructure.persistence.working_memory_repo - One document per resource.

Not versioned: every upsert replaces the previous content.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from domain.entities import WorkingMemory
from infrastructure.persistence.connection import AsyncSQLiteConnection


class SQLiteWorkingMemoryRepository:
    """Async SQLite implementation of WorkingMemoryRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get(self, resource_id: str) -> Optional[WorkingMemory]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM working_memory WHERE resource_id = ?",
                (resource_id,),
            )
        if not rows:
            return None
        row = rows[0]
        return WorkingMemory(
            resource_id=row["resource_id"],
            content=row["content"] or "",
            updated_at=row["updated_at"] or "",
        )

    async def upsert(self, resource_id: str, content: str) -> None:
        async with self._conn.acquire() as conn:
            await conn.execute(
                """INSERT INTO working_memory (resource_id, content, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(resource_id) DO UPDATE SET
                       content = excluded.content,
                       updated_at = excluded.updated_at""",
                (resource_id, content, datetime.now().isoformat()),
            )
