from __future__ import annotations

import json
from typing import Optional

from PySide6.QtCore import QSettings

from assetlib.core.config import ORG, APP
from .adapter import PersistenceError


class SettingsStore:
    """ QSettings-backed store, the desktop counterpart of browser local storage.
    Blobs are stored as JSON text under the given key.
    """

    def __init__(self, settings: QSettings | None = None) -> None:
        self._settings = settings if settings is not None else QSettings(ORG, APP)

    def get(self, key: str) -> Optional[str]:
        if self._settings.status() == QSettings.Status.AccessError:
            raise PersistenceError(f"Settings storage {self._settings.fileName()} is not readable")
        raw = self._settings.value(key, None)
        if raw is None or raw == "":
            return None
        if isinstance(raw, (dict, list)):
            return json.dumps(raw, ensure_ascii=False)  # some backends hand back native types
        return str(raw)

    def set(self, key: str, blob: str) -> None:
        self._settings.setValue(key, blob)
        self._settings.sync()
        status = self._settings.status()
        if status != QSettings.Status.NoError:
            raise PersistenceError(f"Could not write {key!r} to {self._settings.fileName()}: {status.name}")
