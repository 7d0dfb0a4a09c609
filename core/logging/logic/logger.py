"""
core/logging/logic/logger.py
============================

Audit trail of the PDF overlay feature, persisted to SQLite.

- Singleton, shared by every component that receives no explicit audit object
- Entries below the configured level are dropped
- Entries are kept in memory as well (``entries``)
- A failing insert is reported through stdlib logging; callers never see it
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import List, Optional

from core.common.db_interface import SQLiteRepository
from core.config.config_service import config_service
from core.logging.models.log_entry import LogEntry

_log = logging.getLogger(__name__)


def _level_no(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


class Logger(SQLiteRepository):
    """Thread-sicherer Singleton-Logger."""

    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            feature TEXT NOT NULL,
            event TEXT NOT NULL,
            reference_id TEXT,
            message TEXT,
            log_level TEXT NOT NULL DEFAULT 'INFO'
        )
        """,
    )

    _instance: "Logger | None" = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "Logger":
        with cls._instance_lock:
            if cls._instance is None:
                inst = super().__new__(cls)
                SQLiteRepository.__init__(inst, config_service.logging.db_path)
                inst.min_level = config_service.logging.level
                inst.entries = []
                cls._instance = inst
        return cls._instance

    def __init__(self) -> None:
        # state is set up once in __new__
        pass

    # ------------------------------------------------------------------ #
    #  Schreiben                                                         #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Persistiert einen Logeintrag (unterhalb des konfigurierten Levels: verworfen)."""
        if _level_no(level) < _level_no(self.min_level):
            return
        entry = LogEntry(feature, event, level.upper(), reference_id, message)
        self.entries.append(entry)
        try:
            with self.transaction() as conn:
                conn.execute(
                    "INSERT INTO logs (timestamp, feature, event, reference_id, message, log_level) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (entry.timestamp.isoformat(), entry.feature, entry.event,
                     entry.reference_id, entry.message, entry.log_level),
                )
        except (sqlite3.Error, OSError) as exc:
            _log.warning("Audit log insert failed (%s.%s): %s", feature, event, exc)

    # ------------------------------------------------------------------ #
    #  Lesen                                                             #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        return self.query_logs(limit=limit)

    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        """Newest first; every given filter must match."""
        filters = {"feature": feature, "event": event,
                   "reference_id": reference_id, "log_level": level}
        where = [f"{col} = ?" for col, val in filters.items() if val is not None]
        params: list[object] = [val for val in filters.values() if val is not None]
        sql = "SELECT * FROM logs"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY timestamp DESC, id DESC LIMIT ?"
        params.append(limit)
        with self.transaction() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [LogEntry.from_row(row) for row in rows]

    def clear_logs(self) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM logs")
        self.entries.clear()


# Globale Instanz
logger: Logger = Logger()
