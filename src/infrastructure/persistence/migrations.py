"""
infrastructure.persistence.migrations - Database schema creation.

Called once at startup by the factory.
"""

from __future__ import annotations

import logging

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_TABLES = [
    """CREATE TABLE IF NOT EXISTS threads (
        thread_id TEXT PRIMARY KEY,
        resource_id TEXT NOT NULL,
        title TEXT,
        metadata TEXT,
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        thread_id TEXT NOT NULL,
        resource_id TEXT,
        role TEXT,
        content TEXT,
        created_at TEXT,
        FOREIGN KEY (thread_id) REFERENCES threads(thread_id)
    )""",
    """CREATE TABLE IF NOT EXISTS working_memory (
        resource_id TEXT PRIMARY KEY,
        content TEXT,
        updated_at TEXT
    )""",
    "CREATE INDEX IF NOT EXISTS idx_threads_resource ON threads(resource_id)",
    "CREATE INDEX IF NOT EXISTS idx_messages_thread ON messages(thread_id, id)",
]


async def run_migrations(connection: AsyncSQLiteConnection) -> None:
    """Create all tables if they don't exist.

    Safe to call multiple times (uses IF NOT EXISTS).
    """
    async with connection.acquire() as conn:
        for ddl in _TABLES:
            await conn.execute(ddl)
    logger.info("All tables created (or already exist).")
