"""SQLiteStore: single-file cache backend.

Keeps the whole cache in one file instead of one file per entry.

Schema:
  cache_entries  one row per key; INSERT OR REPLACE gives overwrite semantics.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone

from diffguard_store.base import BaseStore
from diffguard_store.models import CacheEntry

DEFAULT_DB_PATH = ".diffguard-cache.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
"""


class SQLiteStore(BaseStore):
    """Stores cache entries in a local SQLite database file.

    Reads and writes arrive from worker threads, so the connection is shared
    across threads and serialized with a lock.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute("SELECT value FROM cache_entries WHERE key=?", (key,)).fetchone()
        return row["value"] if row is not None else None

    def put(self, key: str, value: str) -> None:
        created_at = datetime.now(timezone.utc).isoformat()
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, value, created_at) VALUES (?, ?, ?)",
                (key, value, created_at),
            )
            self._conn.commit()

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            rows = self._conn.execute("SELECT * FROM cache_entries ORDER BY created_at").fetchall()
        return [self._row_to_entry(r) for r in rows]

    def clear(self) -> int:
        with self._lock:
            cursor = self._conn.execute("DELETE FROM cache_entries")
            self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(key=row["key"], value=row["value"], created_at=row["created_at"] or "")
