"""Key-value JSON stores: SQLite-backed for the app, in-memory for tests."""
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

DEFAULT_DB_PATH = str(Path.home() / ".jlpt_planner" / "planner.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT
);
"""


class KeyValueStore(Protocol):
    def read(self, key: str) -> Any | None: ...

    def write(self, key: str, value: Any) -> None: ...


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the store table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def _decode(key: str, raw: str | None) -> Any | None:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unparseable value stored under {}", key)
        return None


class SqliteStore:
    """Whole-record JSON values keyed by string. Last writer wins."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        init_db(db_path)

    def read(self, key: str) -> Any | None:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        conn.close()
        return _decode(key, row["value"] if row else None)

    def write(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        conn = get_connection(self.db_path)
        conn.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
            (key, payload, datetime.now().isoformat()),
        )
        conn.commit()
        conn.close()

    def delete(self, key: str) -> None:
        conn = get_connection(self.db_path)
        conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        conn.commit()
        conn.close()


class MemoryStore:
    """In-process store that round-trips values through JSON like SqliteStore."""

    def __init__(self, initial: dict | None = None):
        self._data = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def read(self, key: str) -> Any | None:
        return _decode(key, self._data.get(key))

    def write(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def write_raw(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
