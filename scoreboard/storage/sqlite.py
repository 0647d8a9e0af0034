"""SQLite persistence for sessions and the ranked list."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import time
from typing import Any

from scoreboard.storage.base import StorageError


class SqliteStore:
    def __init__(self, path: str):
        self.path = path
        self.conn: sqlite3.Connection | None = None

    def init(self) -> None:
        try:
            self.conn = sqlite3.connect(self.path, check_same_thread=False)
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL,
                  updated_at REAL NOT NULL
                )
                """
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"sqlite init failed: {e}") from e

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if not self.conn:
            raise StorageError("sqlite store is not open")
        return self.conn

    def _get(self, key: str) -> Any | None:
        conn = self._require_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"sqlite get {key!r} failed: {e}") from e
        if row is None:
            return None
        return json.loads(row[0])

    def _put(self, key: str, value: Any) -> None:
        conn = self._require_conn()
        text = json.dumps(value, separators=(",", ":"))
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                      value=excluded.value,
                      updated_at=excluded.updated_at
                    """,
                    (key, text, time.time()),
                )
        except sqlite3.Error as e:
            raise StorageError(f"sqlite put {key!r} failed: {e}") from e

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._get, key)

    async def put(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._put, key, value)
