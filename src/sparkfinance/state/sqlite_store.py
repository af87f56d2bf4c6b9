"""SQLite key-value store that survives restarts."""

from __future__ import annotations

import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from sparkfinance.errors import StorageError


class SqliteKeyValueStore:
    """SQLite-backed implementation of the key-value store contract."""

    def __init__(self, db_path: str) -> None:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        try:
            self.connection = sqlite3.connect(path, check_same_thread=False)
            self.connection.row_factory = sqlite3.Row
            self._initialize_schema()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open state database {db_path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        with self._lock:
            try:
                row = self.connection.execute(
                    "SELECT value FROM kv WHERE key = ?",
                    (key,),
                ).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"Read failed for {key}: {exc}") from exc
        if row is None:
            return None
        return str(row["value"])

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            try:
                self.connection.execute(
                    """
                    INSERT OR REPLACE INTO kv(key, value, updated_ts)
                    VALUES(?, ?, ?)
                    """,
                    (key, value, self._utc_now()),
                )
                self.connection.commit()
            except sqlite3.Error as exc:
                raise StorageError(f"Write failed for {key}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        with self._lock:
            try:
                self.connection.execute("DELETE FROM kv WHERE key = ?", (key,))
                self.connection.commit()
            except sqlite3.Error as exc:
                raise StorageError(f"Delete failed for {key}: {exc}") from exc

    def keys(self, prefix: str = "") -> list[str]:
        # Escape LIKE wildcards so prefixes such as "spark_finance_" match literally.
        pattern = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        with self._lock:
            try:
                rows = self.connection.execute(
                    "SELECT key FROM kv WHERE key LIKE ? ESCAPE '\\' ORDER BY key ASC",
                    (pattern,),
                ).fetchall()
            except sqlite3.Error as exc:
                raise StorageError(f"Key scan failed for prefix {prefix}: {exc}") from exc
        return [str(row["key"]) for row in rows]

    def close(self) -> None:
        with self._lock:
            self.connection.close()

    def _initialize_schema(self) -> None:
        self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS kv(
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_ts TEXT NOT NULL
            )
            """
        )
        self.connection.commit()

    @staticmethod
    def _utc_now() -> str:
        return datetime.now(tz=UTC).isoformat()
