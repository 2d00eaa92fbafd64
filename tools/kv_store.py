"""Key/value store abstractions with JSON-file, SQLite and in-memory backends."""
from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote


class StorageError(RuntimeError):
    """Raised when the underlying store cannot be read or written."""


class KeyValueStore:
    """Persistence interface: string keys mapped to serialized documents."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store for tests and throwaway runs."""

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class JSONFileKeyValueStore(KeyValueStore):
    """One JSON file per key under ``base_dir``, suitable for local runs."""

    def __init__(self, base_dir: str | Path = "data/store") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Percent-encoded, so distinct keys always map to distinct files.
        encoded = quote(key, safe="")
        return self.base_dir / f"{encoded}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Could not read key {key!r}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageError(f"Could not write key {key!r}") from exc

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not remove key {key!r}") from exc


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed store for lightweight durability."""

    def __init__(self, db_path: str | Path = "data/wardrobe.db") -> None:
        self.db_path = Path(db_path)
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    );
                    """
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Could not initialise {self.db_path}") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not read key {key!r}") from exc
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO kv_store(key, value) VALUES (?, ?)\n"
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Could not write key {key!r}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Could not remove key {key!r}") from exc


def read_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    """Load and decode the document stored under ``key``."""

    raw = store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Document under {key!r} is not valid JSON") from exc


def write_json(store: KeyValueStore, key: str, payload: Any) -> None:
    store.set(key, json.dumps(payload, ensure_ascii=False))


def build_store(backend: str, path: str | None = None) -> KeyValueStore:
    """Instantiate the configured backend with its local default location."""

    if backend == "sqlite":
        return SQLiteKeyValueStore(path or "data/wardrobe.db")
    if backend == "memory":
        return InMemoryKeyValueStore()
    return JSONFileKeyValueStore(path or "data/store")


__all__ = [
    "StorageError",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JSONFileKeyValueStore",
    "SQLiteKeyValueStore",
    "build_store",
    "read_json",
    "write_json",
]
