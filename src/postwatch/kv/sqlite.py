"""SQLite key-value store - zero-config persistent storage.

Keeps the seen-post ledger on local disk so consecutive ticks of
``postwatch run`` (from cron, a systemd timer, or ``postwatch watch``)
share state.

Example:
    >>> import asyncio
    >>> from postwatch.kv.sqlite import SQLiteKV
    >>> kv = SQLiteKV(":memory:")
    >>> asyncio.run(kv.initialize())
    >>> asyncio.run(kv.put("post:a", "{}"))
    >>> asyncio.run(kv.get("post:a"))
    '{}'
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from postwatch.core.exceptions import StorageError
from postwatch.protocols.kv import DEFAULT_PAGE_SIZE, KeyPage


class SQLiteKV:
    """SQLite-backed key-value store with auto-schema creation.

    Args:
        path: Database file path, or ":memory:" for in-memory.
        timeout: Lock timeout in seconds (default 30).

    Example:
        >>> storage = SQLiteKV("data/postwatch.db")
        >>> await storage.initialize()  # Auto-creates the table
        >>> await storage.put("post:abc", "{...}")
    """

    def __init__(
        self,
        path: str | Path = ":memory:",
        *,
        timeout: float = 30.0,
    ) -> None:
        self._path = str(path)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._initialized = False

    @property
    def path(self) -> str:
        """Database path."""
        return self._path

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """Get a cursor with automatic commit/rollback."""
        if not self._conn:
            raise StorageError("Store not initialized. Call initialize() first.")
        cursor = self._conn.cursor()
        try:
            yield cursor
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StorageError(f"SQLite error: {e}") from e
        finally:
            cursor.close()

    async def initialize(self) -> None:
        """Open the database and create the table.

        Safe to call multiple times (idempotent).
        """
        if self._conn is not None:
            return
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self._path, timeout=self._timeout)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self._path}: {e}") from e

        with self._cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        self._initialized = True

    async def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._initialized = False

    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> KeyPage:
        """List keys under prefix in key order."""
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT key FROM kv
                WHERE substr(key, 1, ?) = ? AND key > ?
                ORDER BY key
                LIMIT ?
                """,
                (len(prefix), prefix, cursor or "", limit + 1),
            )
            rows = [row[0] for row in cur.fetchall()]

        complete = len(rows) <= limit
        keys = rows[:limit]
        return KeyPage(
            keys=keys,
            cursor=None if complete else keys[-1],
            complete=complete,
        )

    async def get(self, key: str) -> str | None:
        """Get the value for a key."""
        with self._cursor() as cur:
            cur.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = cur.fetchone()
        return row[0] if row else None

    async def put(self, key: str, value: str) -> None:
        """Write a value, replacing any existing one."""
        with self._cursor() as cur:
            cur.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, value),
            )

    async def delete(self, key: str) -> None:
        """Delete a key if present."""
        with self._cursor() as cur:
            cur.execute("DELETE FROM kv WHERE key = ?", (key,))
