"""
Durable key-value slots for the task board documents.

Each logical store (board data, auth session) is one string value under a
fixed key. SQLite gives durability on disk; the memory backend serves tests
and headless runs.
"""
import logging
from contextlib import closing
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class StorageUnavailable(RuntimeError):
    """Raised when an operation needs durable storage and none is configured."""
    pass


class KeyValueBackend(Protocol):
    """get/set a string by key."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SqliteKeyValueStore:
    """SQLite-backed key-value slots."""

    def __init__(self, db_path: str):
        """Initialize store and create the table if needed."""
        self.db_path = str(Path(db_path).expanduser())
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with closing(_connect(self.db_path)) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with closing(_connect(self.db_path)) as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with closing(_connect(self.db_path)) as conn:
            conn.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """, (key, value, now))
            conn.commit()

    def delete(self, key: str) -> None:
        with closing(_connect(self.db_path)) as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    def keys(self) -> List[str]:
        with closing(_connect(self.db_path)) as conn:
            rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [r["key"] for r in rows]


class MemoryKeyValueStore:
    """Process-local slots; nothing survives the interpreter."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


def open_backend(path: Optional[str]) -> Optional[KeyValueBackend]:
    """
    Pick a backend for a configured path.

    None or "" means no durable storage at all; ":memory:" gives a
    process-local store; anything else is a SQLite file.
    """
    if not path:
        logger.debug("No storage path configured; running without persistence")
        return None
    if path == MEMORY:
        return MemoryKeyValueStore()
    return SqliteKeyValueStore(path)


def require_backend(backend: Optional[KeyValueBackend]) -> KeyValueBackend:
    """Return the backend or raise StorageUnavailable."""
    if backend is None:
        raise StorageUnavailable("No durable storage configured")
    return backend
