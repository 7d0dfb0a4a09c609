"""
core/settings/logic/settings_manager.py
=======================================

High-Level-API für Settings und Sitzungszustand.

Wird explizit injiziert (Annotation-Store, Signatur-Bibliothek, Editor-Sitzung),
damit die Kernlogik ohne globale Speicher testbar bleibt.
"""

from __future__ import annotations
from typing import Any, Optional

from core.settings.logic.settings_repository import (
    MemorySettingsRepository,
    SettingsRepository,
)


class SettingsManager:
    def __init__(self, repository: Optional[SettingsRepository] = None) -> None:
        self._repo = repository or MemorySettingsRepository()

    # ------------------------------------------------------------------ #
    #  API                                                               #
    # ------------------------------------------------------------------ #
    def get(self, namespace: str, key: str, fallback: Any | None = None) -> Any | None:
        return self._repo.get(namespace, key, fallback)

    def set(self, namespace: str, key: str, value: Any) -> None:
        self._repo.set(namespace, key, value)

    def remove(self, namespace: str, key: str) -> None:
        self._repo.delete(namespace, key)

    def clear(self, namespace: str) -> None:
        """Drop every key of *namespace*."""
        self._repo.clear(namespace)
