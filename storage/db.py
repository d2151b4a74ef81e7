from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import aiosqlite
from aiosqlite import Connection, Row

log = logging.getLogger("storage.db")


class DB:
    """Thin async wrapper around a SQLite database using :mod:`aiosqlite`."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.conn: Optional[Connection] = None
        self._schema_ready = False

    async def connect(self) -> None:
        """Open a connection and initialise the schema if necessary."""
        if self.conn is not None:
            return

        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = await aiosqlite.connect(self.path)
        self.conn.row_factory = Row
        await self.conn.execute("PRAGMA foreign_keys=ON;")
        await self.conn.execute("PRAGMA journal_mode=WAL;")
        await self.conn.execute("PRAGMA synchronous=NORMAL;")
        await self.conn.execute("PRAGMA temp_store=MEMORY;")
        await self._ensure_schema()
        log.debug("connected to %s", self.path)

    async def close(self) -> None:
        if self.conn is None:
            return
        await self.conn.close()
        self.conn = None
        self._schema_ready = False

    async def _ensure_schema(self) -> None:
        if self.conn is None:
            raise RuntimeError("Database is not connected")
        if self._schema_ready:
            return

        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS knowledge (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                fact TEXT NOT NULL,
                source TEXT,
                confidence REAL NOT NULL DEFAULT 1.0,
                embedding BLOB,
                created_at REAL NOT NULL DEFAULT (strftime('%s','now')),
                updated_at REAL NOT NULL DEFAULT (strftime('%s','now'))
            )
            """
        )
        await self.conn.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS knowledge_fact_key ON knowledge(fact)"
        )
        await self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_knowledge_updated ON knowledge(updated_at)"
        )

        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL
            )
            """
        )
        await self.conn.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS categories_name_key ON categories(name)"
        )

        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS knowledge_categories (
                category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
                fact_id INTEGER NOT NULL REFERENCES knowledge(id) ON DELETE CASCADE
            )
            """
        )
        await self.conn.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS knowledge_categories_pair "
            "ON knowledge_categories(category_id, fact_id)"
        )
        await self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_knowledge_categories_fact ON knowledge_categories(fact_id)"
        )

        await self.conn.commit()
        self._schema_ready = True


async def ensure_db_ready(db: DB) -> DB:
    await db.connect()
    return db
