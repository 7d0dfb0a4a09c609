"""
log_entry.py

Ein Audit-Ereignis (Export, Bildkomposition, Zuschneiden, Reset).

Der Zeitstempel ist immer UTC; ``as_dict()`` liefert zusätzlich die lokale
Anzeigezeit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import core.helpers.date_time_helper as dt


@dataclass(frozen=True)
class LogEntry:
    feature: str
    event: str
    log_level: str = "INFO"
    reference_id: Optional[str] = None
    message: Optional[str] = None
    timestamp: datetime = None  # type: ignore[assignment]
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", datetime.now(timezone.utc))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LogEntry":
        """Row of the ``logs`` table (sqlite3.Row or dict)."""
        return cls(
            id=row["id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            log_level=row["log_level"],
            feature=row["feature"],
            event=row["event"],
            reference_id=row["reference_id"],
            message=row["message"],
        )

    def as_dict(self) -> dict:
        utc_iso = self.timestamp.replace(microsecond=0).isoformat()
        return {
            "id": self.id,
            "timestamp_utc": utc_iso,
            "timestamp": dt.utc_to_local_str(utc_iso),
            "log_level": self.log_level,
            "feature": self.feature,
            "event": self.event,
            "reference_id": self.reference_id,
            "message": self.message,
        }

    def __str__(self) -> str:
        ref = f" [{self.reference_id}]" if self.reference_id else ""
        return f"{self.log_level:<7} {self.feature}.{self.event}{ref} {self.message or ''}".rstrip()
