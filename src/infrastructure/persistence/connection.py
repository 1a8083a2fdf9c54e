"""
infrastructure.persistence.connection - Async SQLite connection manager.

Wraps aiosqlite with a context manager. Every sqlite failure leaves the
repositories as a StorageError so callers only deal with domain errors.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from domain.exceptions import StorageError

logger = logging.getLogger(__name__)


class AsyncSQLiteConnection:
    """Async SQLite connection provider with auto-commit/rollback."""

    def __init__(self, db_path: str | Path, *, create_parent: bool = True):
        self._db_path = str(db_path)
        self._create_parent = create_parent

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an async SQLite connection with FK support.

        Commits on success, rolls back on exception.
        """
        if self._create_parent and self._db_path != ":memory:":
            try:
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(f"Cannot create database directory: {exc}") from exc

        try:
            conn = await aiosqlite.connect(self._db_path)
        except aiosqlite.Error as exc:
            logger.error("Cannot open database %s: %s", self._db_path, exc)
            raise StorageError(f"Cannot open database {self._db_path}: {exc}") from exc

        try:
            await conn.execute("PRAGMA foreign_keys = ON")
            conn.row_factory = aiosqlite.Row
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                logger.exception("Database operation failed, transaction rolled back.")
                raise
        except aiosqlite.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            await conn.close()
