"""SQLite-backed storage implementation."""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List

import structlog

from ..domain.errors import PersistenceError
from .base import KeyValueStorage

logger = structlog.get_logger()

SCHEMA_VERSION = 1


class SQLiteStorage(KeyValueStorage):
    """Durable storage in a single SQLite file.

    Scalars live in ``kv`` and ordered logs in ``log_entries``, both keyed by
    the namespaced storage key. Values are JSON encoded. The connection runs
    in autocommit mode, so single statements commit on their own and
    ``transaction()`` wraps several of them in ``BEGIN IMMEDIATE``/``COMMIT``.
    """

    def __init__(self, db_path: str) -> None:
        super().__init__()
        self._path = db_path
        try:
            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
        except (OSError, sqlite3.Error) as e:
            logger.error("storage_open_failed", backend="sqlite", path=db_path, error=str(e))
            raise PersistenceError(f"Failed to open {db_path}: {e}") from e
        try:
            self._configure()
            self._apply_migrations()
        except (sqlite3.Error, ValueError) as e:
            self._conn.close()
            logger.error("storage_open_failed", backend="sqlite", path=db_path, error=str(e))
            raise PersistenceError(f"Failed to open {db_path}: {e}") from e
        logger.info("storage_initialized", backend="sqlite", path=db_path)

    @contextmanager
    def _errors(self, operation: str, key: str = "") -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            logger.error("storage_error", backend="sqlite", operation=operation, key=key, error=str(e))
            raise PersistenceError(f"{operation} failed for {key!r}: {e}") from e

    def _configure(self) -> None:
        cursor = self._conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    def _apply_migrations(self) -> None:
        user_version = self._conn.execute("PRAGMA user_version").fetchone()[0]
        if user_version == 0:
            self._create_v1_schema()
            self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        elif user_version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema version: {user_version}")

    def _create_v1_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS log_entries (
                key TEXT NOT NULL,
                seq INTEGER NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (key, seq)
            )
            """
        )

    def _read(self, key: str) -> Any:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else json.loads(row[0])

    def _write(self, key: str, value: Any) -> None:
        self._conn.execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, json.dumps(value)),
        )

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._locked():
            with self._errors("get", key):
                value = self._read(key)
        return default if value is None else value

    async def set(self, key: str, value: Any) -> None:
        async with self._locked():
            with self._errors("set", key):
                self._write(key, value)

    async def increment(self, key: str, amount: int = 1) -> int:
        async with self.transaction():
            with self._errors("increment", key):
                value = int(self._read(key) or 0) + amount
                self._write(key, value)
        return value

    async def append(self, key: str, value: Any) -> int:
        async with self.transaction():
            with self._errors("append", key):
                row = self._conn.execute(
                    "SELECT COALESCE(MAX(seq), 0) FROM log_entries WHERE key = ?", (key,)
                ).fetchone()
                seq = int(row[0]) + 1
                self._conn.execute(
                    "INSERT INTO log_entries (key, seq, value) VALUES (?, ?, ?)",
                    (key, seq, json.dumps(value)),
                )
        return seq

    async def get_list(self, key: str) -> List[Any]:
        async with self._locked():
            with self._errors("get_list", key):
                rows = self._conn.execute(
                    "SELECT value FROM log_entries WHERE key = ? ORDER BY seq", (key,)
                ).fetchall()
        return [json.loads(row[0]) for row in rows]

    async def close(self) -> None:
        async with self._locked():
            self._conn.close()
        logger.info("storage_closed", backend="sqlite", path=self._path)

    async def _begin(self) -> None:
        with self._errors("begin"):
            self._conn.execute("BEGIN IMMEDIATE")

    async def _commit(self) -> None:
        with self._errors("commit"):
            self._conn.execute("COMMIT")

    async def _rollback(self) -> None:
        with self._errors("rollback"):
            self._conn.execute("ROLLBACK")
        logger.warning("transaction_rolled_back", backend="sqlite")
