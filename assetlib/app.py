from __future__ import annotations

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QCoreApplication

from .core.config import (
    Config, load_config, save_config, ORG, APP, DEFAULT_DB
)
from .core.manager import AssetTreeManager
from .storage import DatabaseManager, PersistenceAdapter, SettingsStore, SqlStore
from .ui.main_window import MainWindow

log = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_store(cfg: Config, db: DatabaseManager | None = None) -> PersistenceAdapter:
    """ Storage backend named by the config. The sqlite backend opens (and creates) the database file. """
    if cfg.storage.backend == "sqlite":
        db = db if db is not None else DatabaseManager()
        db_path = Path(cfg.storage.db_path) if cfg.storage.db_path else DEFAULT_DB
        db.open(db_path, create_if_missing=True)
        cfg.storage.db_path = str(db_path)
        log.info("Asset library stored in %s", db_path)
        return SqlStore(db)
    return SettingsStore()


def _app_version() -> str:
    try:
        return version("asset-library")
    except PackageNotFoundError:
        return "0.0.0"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="asset-library", description="Browse and pick library images")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    args, qt_args = parser.parse_known_args(argv if argv is not None else sys.argv[1:])
    setup_logging(args.verbose)

    app = QApplication([sys.argv[0], *qt_args])
    # Set QSettings identity BEFORE any settings access
    QCoreApplication.setOrganizationName(ORG)
    QCoreApplication.setApplicationName(APP)
    QCoreApplication.setApplicationVersion(_app_version())

    # Load user prefs (QSettings-backed)
    cfg = load_config()

    db = DatabaseManager()
    store = build_store(cfg, db)
    manager = AssetTreeManager(
        store, cfg.storage.key,
        unique_folder_names=cfg.tree.unique_folder_names,
        start_folder=cfg.ui.lastFolderId,
    )

    win = MainWindow(cfg=cfg, manager=manager)
    win.show()

    # Persist settings on quit
    def persist():
        win.snapshot_ui()
        save_config(cfg)
        db.dispose()

    app.aboutToQuit.connect(persist)
    sys.exit(app.exec())
