from __future__ import annotations
import json
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, Tuple

from core.common.db_interface import SQLiteRepository


def _to_json(v: Any) -> str:            # serialisieren
    try: return json.dumps(v)
    except TypeError: return json.dumps(str(v))

def _from_json(txt: str) -> Any:        # deserialisieren
    try: return json.loads(txt)
    except ValueError: return txt


# ------------------------------------------------------------------ #
class SettingsRepository(ABC):
    """Namespaced key-value storage behind :class:`SettingsManager`."""

    @abstractmethod
    def get(self, ns: str, key: str, fb: Any = None) -> Any | None: ...

    @abstractmethod
    def set(self, ns: str, key: str, val: Any) -> None: ...

    @abstractmethod
    def delete(self, ns: str, key: str) -> None: ...

    @abstractmethod
    def clear(self, ns: str) -> None: ...


# ------------------------------------------------------------------ #
class MemorySettingsRepository(SettingsRepository):
    """Session-scoped store; values are JSON round-tripped like the SQLite variant."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._data: Dict[Tuple[str, str], str] = {}

    def get(self, ns: str, key: str, fb: Any = None) -> Any | None:
        with self._lock:
            raw = self._data.get((ns, key))
        return _from_json(raw) if raw is not None else fb

    def set(self, ns: str, key: str, val: Any) -> None:
        with self._lock:
            self._data[(ns, key)] = _to_json(val)

    def delete(self, ns: str, key: str) -> None:
        with self._lock:
            self._data.pop((ns, key), None)

    def clear(self, ns: str) -> None:
        with self._lock:
            for k in [k for k in self._data if k[0] == ns]:
                del self._data[k]


# ------------------------------------------------------------------ #
class SQLiteSettingsRepository(SQLiteRepository, SettingsRepository):
    """Client-local persistent store (one row per namespace/key)."""

    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS settings(
            namespace TEXT NOT NULL,
            key       TEXT NOT NULL,
            value     TEXT NOT NULL,
            PRIMARY KEY(namespace,key)
        )
        """,
    )

    # ------------------------- öffentliche API ----------------------- #
    def get(self, ns: str, key: str, fb: Any = None) -> Any | None:
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE namespace=? AND key=?", (ns, key)
            ).fetchone()
        return _from_json(row["value"]) if row else fb

    def set(self, ns: str, key: str, val: Any) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO settings (namespace,key,value) VALUES (?,?,?)
                ON CONFLICT(namespace,key) DO UPDATE SET value=excluded.value
                """,
                (ns, key, _to_json(val)),
            )

    def delete(self, ns: str, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM settings WHERE namespace=? AND key=?", (ns, key))

    def clear(self, ns: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM settings WHERE namespace=?", (ns,))
