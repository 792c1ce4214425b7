from __future__ import annotations

from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QMainWindow

from assetlib.core.config import Config
from assetlib.core.manager import AssetTreeManager
from assetlib.core.nodes import Asset

from .asset_browser import AssetBrowser


class MainWindow(QMainWindow):
    """ Standalone host for the asset browser.
    Without an editor to insert into, a selected asset's data reference is put on the clipboard.
    """

    def __init__(self, cfg: Config, manager: AssetTreeManager) -> None:
        super().__init__()
        self.setWindowTitle("Asset Library")
        self.resize(1000, 700)

        self.config = cfg
        self.manager = manager

        self.browser = AssetBrowser(manager, self)
        self.setCentralWidget(self.browser)
        self.manager.assetSelected.connect(self._on_asset_selected)

        self._restore_ui()

    def _restore_ui(self) -> None:
        geometry = self.config.ui.geometry
        if {"w", "h"} <= geometry.keys():
            self.resize(int(geometry["w"]), int(geometry["h"]))
        if {"x", "y"} <= geometry.keys():
            self.move(int(geometry["x"]), int(geometry["y"]))
        sizes = self.config.ui.splitterSizes.get("browser")
        if sizes:
            self.browser.splitter.setSizes([int(s) for s in sizes])

    def snapshot_ui(self) -> None:
        """ Copy window state into the config so it can be saved on quit. """
        self.config.ui.geometry = {"x": self.x(), "y": self.y(), "w": self.width(), "h": self.height()}
        self.config.ui.splitterSizes = {"browser": self.browser.splitter.sizes()}
        self.config.ui.lastFolderId = self.manager.current_folder().id

    def _on_asset_selected(self, asset: Asset) -> None:
        QGuiApplication.clipboard().setText(asset.data)
        self.statusBar().showMessage(f"Copied image reference for {asset.name}", 5000)

    def closeEvent(self, event, /):
        self.snapshot_ui()
        super().closeEvent(event)
