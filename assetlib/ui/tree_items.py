from __future__ import annotations

import base64
import binascii

from PySide6.QtCore import Qt
from PySide6.QtGui import QIcon, QPixmap
from PySide6.QtWidgets import QListWidgetItem, QTreeWidgetItem

from assetlib.core.nodes import Asset, Folder

# ---- Roles & column setup ----------------------------------------------------
COL_LABEL = 0  # single-column tree; label stored as text(0)

ROLE_KIND = Qt.ItemDataRole.UserRole + 1  # "Folder" | "Asset"
ROLE_ID = Qt.ItemDataRole.UserRole + 2  # node id: str


def pixmap_from_data(data: str) -> QPixmap | None:
    """ Decode a base64 ``data:`` URI into a pixmap. Other references (plain URLs) give None. """
    if not data.startswith("data:") or ";base64," not in data:
        return None
    try:
        raw = base64.b64decode(data.split(";base64,", 1)[1], validate=True)
    except (binascii.Error, ValueError):
        return None
    pm = QPixmap()
    if not pm.loadFromData(raw):
        return None
    return pm


# ---- Tree Items --------------------------------------------------------------
class FolderItem(QTreeWidgetItem):
    """ Folder row in the sidebar tree. Only folders are shown there, assets live in the grid. """

    def __init__(self, folder: Folder):
        super().__init__([folder.name])
        self.setData(COL_LABEL, ROLE_KIND, "Folder")
        self.setData(COL_LABEL, ROLE_ID, folder.id)
        self.setChildIndicatorPolicy(QTreeWidgetItem.DontShowIndicatorWhenChildless)

    @property
    def id(self) -> str:
        return str(self.data(COL_LABEL, ROLE_ID))

    @property
    def label(self) -> str:
        return self.text(COL_LABEL)


class AssetItem(QListWidgetItem):
    """ Asset tile in the grid, with a thumbnail when the data reference can be decoded locally. """

    def __init__(self, asset: Asset):
        super().__init__(asset.name)
        self.setData(ROLE_KIND, "Asset")
        self.setData(ROLE_ID, asset.id)
        self.setToolTip(asset.name)
        pm = pixmap_from_data(asset.data)
        if pm is not None:
            self.setIcon(QIcon(pm))

    @property
    def id(self) -> str:
        return str(self.data(ROLE_ID))

    @property
    def label(self) -> str:
        return self.text()
