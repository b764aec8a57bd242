"""Shared aiosqlite plumbing for the SQLite-backed stores.

All stores live in one database file (``DATABASE_PATH``).  Each store
owns its tables and creates them in :meth:`SQLiteStore.initialize`.
Connections are opened per operation, as aiosqlite runs each connection
on its own thread.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite
import structlog

from repair_assistant.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"


def new_id() -> str:
    return str(uuid.uuid4())


class SQLiteStore:
    """Base class: schema creation and connection handling."""

    _SCHEMA: tuple[str, ...] = ()

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create this store's tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for statement in self._SCHEMA:
                await db.execute(statement)
            await db.commit()
        logger.info("sqlite_store_initialized", store=type(self).__name__, path=str(self._db_path))

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection; SQLite failures surface as :class:`PersistenceError`.

        Constraint violations pass through unchanged so stores can turn them
        into validation errors.
        """
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON")
                yield db
        except aiosqlite.IntegrityError:
            raise
        except aiosqlite.Error as exc:
            logger.error("sqlite_operation_failed", store=type(self).__name__, error=str(exc))
            raise PersistenceError(
                message=f"Database operation failed: {exc}",
                provider_name="sqlite",
            ) from exc
