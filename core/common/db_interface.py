"""
core/common/db_interface.py
===========================

SQLite plumbing shared by the audit log and the settings store.

Subclasses declare their DDL in ``SCHEMA``; it is applied once, when the
lazily opened connection is first used. ``":memory:"`` is accepted as path.
"""
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

MEMORY = ":memory:"


def create_sqlite_connection(db_path: Path | str, *, check_same_thread: bool = False) -> sqlite3.Connection:
    """Opens *db_path* (creating its folder) with Row access by column name."""
    if str(db_path) != MEMORY:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    return conn


class SQLiteRepository:
    SCHEMA: Sequence[str] = ()

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = db_path if str(db_path) == MEMORY else Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def db_path(self) -> Path | str:
        return self._db_path

    @property
    def conn(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                conn = create_sqlite_connection(self._db_path, check_same_thread=False)
                with conn:
                    for ddl in self.SCHEMA:
                        conn.execute(ddl)
                self._conn = conn
            return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Serialised unit of work; commits on success, rolls back on error."""
        with self._lock:
            conn = self.conn
            with conn:
                yield conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None
