"""
SQLite-backed key-value storage.

Gives a Python process the same persistence a browser tab gets from
local storage: one file, one table, whole-value writes.

Invariants:
    - One connection per operation, autocommit
    - A write replaces the full value for its key (no merge, no version check)
    - Processes sharing a file see last-write-wins per key

Table schema:
    kv:
        - key TEXT PRIMARY KEY
        - value TEXT NOT NULL
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class SqliteStorage:
    """File-backed implementation of KeyValueStorage.

    Example:
        >>> storage = SqliteStorage("/tmp/studystore.db")
        >>> storage.set_item("local_storage_version", "2.1")
    """

    def __init__(self, path: str, busy_timeout_ms: int = 5000) -> None:
        """Initialize the store and create the table if needed.

        Args:
            path: SQLite database file
            busy_timeout_ms: SQLite busy timeout
        """
        self.path = Path(path)
        self.busy_timeout_ms = busy_timeout_ms
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        logger.info(f"Opened SQLite storage: {self.path}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(
            str(self.path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,
        )
        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            yield conn
        finally:
            conn.close()

    def get_item(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv")
        logger.info(f"Cleared SQLite storage: {self.path}")

    def keys(self) -> Iterator[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return iter([row[0] for row in rows])
