from __future__ import annotations

import asyncio
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Generator, Optional
from urllib.parse import quote

from .settings import Settings, get_settings


class StorageError(Exception):
    """Raised by storage backends when a read or write cannot be completed."""


# PUBLIC_INTERFACE
class KeyValueStorage(ABC):
    """Asynchronous byte-string store addressed by key."""

    name: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under key, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Replace the value stored under key in full."""


class InMemoryStorage(KeyValueStorage):
    """
    Process-local storage suitable for testing and default runtime.
    """

    name = "memory"

    def __init__(self) -> None:
        self._items: Dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._items.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._items[key] = bytes(value)


class FileStorage(KeyValueStorage):
    """
    One file per key inside a directory. Each write lands in a temporary
    file first and is moved into place with os.replace.
    """

    name = "file"

    def __init__(self, directory: str) -> None:
        self._directory = directory

    def _path_for(self, key: str) -> str:
        return os.path.join(self._directory, quote(key, safe="") + ".json")

    def _read(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"failed to read {path}") from e

    def _write(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        try:
            os.makedirs(self._directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(value)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"failed to write {path}") from e

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)


@dataclass(frozen=True)
class _Cols:
    table: str = "kv"
    key: str = "key"
    value: str = "value"


_COLS = _Cols()


class SQLiteStorage(KeyValueStorage):
    """
    Key-value table in a SQLite database. Blocking calls run in a worker
    thread so the event loop is not held up. The database file and table are
    created on first use, so a bad path surfaces as a StorageError from
    get/set rather than from the constructor.
    """

    name = "sqlite"

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._initialized = False

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        if not self._initialized:
            os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        conn = sqlite3.connect(self._db_path)
        try:
            if not self._initialized:
                self._init_db(conn)
                self._initialized = True
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {_COLS.table} (
                {_COLS.key} TEXT PRIMARY KEY,
                {_COLS.value} BLOB NOT NULL
            )
            """
        )

    def _read(self, key: str) -> Optional[bytes]:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    f"SELECT {_COLS.value} FROM {_COLS.table} WHERE {_COLS.key} = ?", (key,)
                ).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"failed to read key {key!r}") from e
        return bytes(row[0]) if row else None

    def _write(self, key: str, value: bytes) -> None:
        try:
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.key}, {_COLS.value}) VALUES (?, ?)
                    ON CONFLICT({_COLS.key}) DO UPDATE SET {_COLS.value} = excluded.{_COLS.value}
                    """,
                    (key, sqlite3.Binary(value)),
                )
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"failed to write key {key!r}") from e

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._write, key, value)


# PUBLIC_INTERFACE
def get_storage(settings: Optional[Settings] = None) -> KeyValueStorage:
    """
    Factory to return the configured storage backend based on settings.
    - memory: InMemoryStorage
    - file: FileStorage rooted at STORAGE_DIR
    - sqlite: SQLiteStorage at SQLITE_DB_PATH
    """
    settings = settings or get_settings()
    if settings.storage_backend == "sqlite":
        return SQLiteStorage(settings.sqlite_db_path)
    if settings.storage_backend == "file":
        return FileStorage(settings.storage_dir)
    return InMemoryStorage()
