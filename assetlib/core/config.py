from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError
from PySide6.QtCore import QSettings

from .nodes import ROOT_ID

log = logging.getLogger(__name__)

# QSettings scope
ORG = "PersonalApps"
APP = "Asset Library"

DEFAULT_STORAGE_KEY = "assetlib/tree"
DEFAULT_DB = Path.home() / "AssetLibrary" / "library.db"


class UIState(BaseModel):
    geometry: dict = Field(default_factory=dict)
    splitterSizes: dict = Field(default_factory=dict)
    lastFolderId: str = ROOT_ID


class StorageConfig(BaseModel):
    backend: Literal["settings", "sqlite"] = "settings"
    db_path: str = ""
    key: str = DEFAULT_STORAGE_KEY


class TreeConfig(BaseModel):
    unique_folder_names: bool = False


class Config(BaseModel):
    ui: UIState = Field(default_factory=UIState)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)


def _s(settings: QSettings | None = None) -> QSettings:
    return settings if settings is not None else QSettings(ORG, APP)


def _read_json(s: QSettings, key: str, default: dict) -> dict:
    raw = s.value(key, "")
    if isinstance(raw, (dict, list)):
        return raw  # some backends can store native types
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def _write_json(s: QSettings, key: str, obj: dict | list) -> None:
    s.setValue(key, json.dumps(obj, ensure_ascii=False))


def load_config(settings: QSettings | None = None) -> Config:
    s = _s(settings)

    # --- UI ---
    s.beginGroup("ui")
    geometry = _read_json(s, "geometry", {})
    splitter_sizes = _read_json(s, "splitterSizes", {})
    last_folder = str(s.value("lastFolderId", ROOT_ID, str) or ROOT_ID)
    s.endGroup()

    # --- Storage ---
    s.beginGroup("storage")
    backend = str(s.value("backend", "settings", str) or "settings")
    db_path = str(s.value("db_path", "", str))
    key = str(s.value("key", DEFAULT_STORAGE_KEY, str) or DEFAULT_STORAGE_KEY)
    s.endGroup()

    # --- Tree ---
    s.beginGroup("tree")
    unique_names = s.value("unique_folder_names", False, bool)
    s.endGroup()

    try:
        return Config(
            ui=UIState(geometry=geometry, splitterSizes=splitter_sizes, lastFolderId=last_folder),
            storage=StorageConfig(backend=backend, db_path=db_path, key=key),
            tree=TreeConfig(unique_folder_names=bool(unique_names)),
        )
    except ValidationError as e:
        log.warning("Ignoring invalid settings, using defaults: %s", e)
        return Config()


def save_config(cfg: Config, settings: QSettings | None = None) -> None:
    s = _s(settings)

    # --- UI ---
    s.beginGroup("ui")
    _write_json(s, "geometry", dict(cfg.ui.geometry))
    _write_json(s, "splitterSizes", dict(cfg.ui.splitterSizes))
    s.setValue("lastFolderId", cfg.ui.lastFolderId)
    s.endGroup()

    # --- Storage ---
    s.beginGroup("storage")
    s.setValue("backend", cfg.storage.backend)
    s.setValue("db_path", cfg.storage.db_path)
    s.setValue("key", cfg.storage.key)
    s.endGroup()

    # --- Tree ---
    s.beginGroup("tree")
    s.setValue("unique_folder_names", cfg.tree.unique_folder_names)
    s.endGroup()
    s.sync()
