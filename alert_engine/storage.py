"""Key/value persistence used for settings, notification lists and audit trails.

Values are JSON strings. A missing or unparsable value is always treated as
absent so callers can fall back to their defaults.
"""

import json
import logging
import os
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

# Serializes read-modify-write of bounded lists across delivery workers
_append_lock = threading.Lock()

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class KeyValueStore(ABC):
    """Minimal string key/value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored string, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a string value, replacing any previous one."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store, useful for tests and throwaway engines."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed key/value storage."""

    def __init__(self, db_path: str | None = None):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database. Defaults to ALERT_ENGINE_DB_PATH
                     env var or ~/.alert-engine/engine.db
        """
        if db_path:
            self.db_path = os.path.expanduser(db_path)
        else:
            self.db_path = os.path.expanduser(
                os.environ.get("ALERT_ENGINE_DB_PATH", "~/.alert-engine/engine.db")
            )

        # Ensure directory exists
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        """Get a fresh database connection."""
        return sqlite3.connect(self.db_path)

    def get(self, key: str) -> str | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Failed to read {key} from {self.db_path}: {e}")
            return None
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )
            conn.commit()


def load_json(store: KeyValueStore, key: str) -> Any | None:
    """Read and decode a JSON value; corrupt or missing data yields None."""
    try:
        raw = store.get(key)
    except Exception as e:
        logger.warning(f"Storage read failed for {key}: {e}")
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Ignoring corrupt value stored under {key}: {e}")
        return None


def save_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Encode and write a JSON value. Returns False if the write failed."""
    try:
        store.set(key, json.dumps(value))
        return True
    except Exception as e:
        logger.error(f"Storage write failed for {key}: {e}")
        return False


def append_bounded(store: KeyValueStore, key: str, entry: dict, limit: int = 10) -> list:
    """Append an entry to a persisted JSON list, keeping the newest `limit`."""
    with _append_lock:
        entries = load_json(store, key)
        if not isinstance(entries, list):
            entries = []
        entries.append(entry)
        entries = entries[-limit:]
        save_json(store, key, entries)
    return entries
