"""
date_time_helper.py

Helper functions for UTC timestamps stored by the audit log.
Display conversion uses the machine's local timezone.
"""

from datetime import datetime, timezone


def utc_to_local_str(utc_iso: str) -> str:
    """
    Formats a UTC ISO8601 timestamp as a localized, human-readable string for display.

    :param utc_iso: UTC time as ISO string (from DB/logs)
    :return: String in format "DD.MM.YYYY HH:mm:ss" (local time)
    """
    dt_utc = datetime.fromisoformat(utc_iso)
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    return dt_utc.astimezone().strftime("%d.%m.%Y %H:%M:%S")
