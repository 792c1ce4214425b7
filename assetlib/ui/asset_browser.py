from __future__ import annotations

import asyncio
from typing import Optional

from PySide6.QtCore import Qt, QPoint, QSize
from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QTreeWidget, QListWidget, \
    QInputDialog, QLineEdit, QMessageBox, QMenu, QLabel, QSplitter, QFileDialog, QTreeWidgetItem, QListView

from assetlib.core.ingest import UploadSource
from assetlib.core.manager import AssetTreeManager
from assetlib.core.nodes import Folder
from assetlib.core.operations import OpResult, Reason
from assetlib.core.tree import find_folder, walk
from .tree_items import FolderItem, AssetItem, COL_LABEL

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp)"


class AssetBrowser(QWidget):
    """
    Asset library browser: folder tree on the left, the current folder's images on the right.
    Features:
    - Create Folder in the current folder
    - Expand/collapse folders (remembered in the library)
    - Rename folders and images (double-click or context menu)
    - Up navigation with a breadcrumb
    - Upload images into the current folder
    - Activate an image to select it
    The widget never edits the tree itself, it asks the manager and redraws on its signals.
    """

    def __init__(self, manager: AssetTreeManager, parent=None) -> None:
        super().__init__(parent)
        self.manager = manager
        self._syncing = False
        self._folder_items: dict[str, FolderItem] = {}
        self._tree_shape: list[tuple[str, str | None]] = []

        # UI
        root = QVBoxLayout(self)
        self.splitter = QSplitter(Qt.Horizontal, self)
        root.addWidget(self.splitter, 1)

        # Left: new folder + folder tree
        left = QWidget(self.splitter)
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)
        new_folder = QHBoxLayout()
        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("Create new folder...")
        self.name_edit.returnPressed.connect(lambda: self._create_folder())
        self.btn_new_folder = QPushButton("Create Folder")
        self.btn_new_folder.clicked.connect(lambda: self._create_folder())
        new_folder.addWidget(self.name_edit, 1)
        new_folder.addWidget(self.btn_new_folder)
        left_layout.addLayout(new_folder)

        self.tree = QTreeWidget()
        self.tree.setColumnCount(1)
        self.tree.setHeaderHidden(True)
        self.tree.setExpandsOnDoubleClick(False)
        self.tree.setContextMenuPolicy(Qt.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self._on_tree_context_menu)
        self.tree.currentItemChanged.connect(self._on_current_changed)
        self.tree.itemExpanded.connect(lambda it: self._on_expansion(it, True))
        self.tree.itemCollapsed.connect(lambda it: self._on_expansion(it, False))
        self.tree.itemDoubleClicked.connect(lambda it, _col: self._on_rename(it))
        left_layout.addWidget(self.tree, 1)

        # Right: navigation, upload, asset grid
        right = QWidget(self.splitter)
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)
        actions = QHBoxLayout()
        self.btn_up = QPushButton("Back")
        self.btn_up.clicked.connect(lambda: self.manager.up())
        self.breadcrumb = QLabel()
        self.btn_upload = QPushButton("Upload Images")
        self.btn_upload.clicked.connect(lambda: self._upload())
        actions.addWidget(self.btn_up)
        actions.addWidget(self.breadcrumb, 1)
        actions.addWidget(self.btn_upload)
        right_layout.addLayout(actions)

        self.assets = QListWidget()
        self.assets.setViewMode(QListView.IconMode)
        self.assets.setIconSize(QSize(96, 96))
        self.assets.setResizeMode(QListView.Adjust)
        self.assets.setContextMenuPolicy(Qt.CustomContextMenu)
        self.assets.customContextMenuRequested.connect(self._on_asset_context_menu)
        self.assets.itemActivated.connect(lambda it: self.manager.select_asset(it.id))
        right_layout.addWidget(self.assets, 1)

        self.status = QLabel()
        self.status.setWordWrap(True)
        root.addWidget(self.status)

        self.splitter.setStretchFactor(1, 1)

        # Redraw only from the manager
        self.manager.treeChanged.connect(lambda _tree: self.reload())
        self.manager.selectionChanged.connect(lambda _folder: self._show_current())
        self.manager.persistenceFailed.connect(self._set_status)

        self.reload()
        if self.manager.last_error:
            self._set_status(self.manager.last_error)

    # --------- Tree → UI population ---------
    @staticmethod
    def _shape(tree: Folder) -> list[tuple[str, str | None]]:
        return [(n.id, p.id if p else None) for n, p in walk(tree) if isinstance(n, Folder)]

    def reload(self) -> None:
        """ Refresh the folder tree from the manager's current tree, then the right pane.
        When only names or expansion changed the existing items are updated in place, otherwise the tree is rebuilt.
        """
        tree = self.manager.tree
        shape = self._shape(tree)
        self._syncing = True
        try:
            if shape == self._tree_shape:
                for node, _ in walk(tree):
                    if isinstance(node, Folder):
                        item = self._folder_items[node.id]
                        item.setText(COL_LABEL, node.name)
                        item.setExpanded(node.expanded or node.is_root)
            else:
                self.tree.clear()
                self._folder_items.clear()
                root_item = self._add_folder_item(None, tree)
                root_item.setExpanded(True)
                self._tree_shape = shape
        finally:
            self._syncing = False
        self._show_current()

    def _add_folder_item(self, parent: QTreeWidgetItem | None, folder: Folder) -> FolderItem:
        """ Adds a folder and, recursively, its sub folders. Assets are not shown in the tree. """
        item = FolderItem(folder)
        if parent is None:
            self.tree.addTopLevelItem(item)
        else:
            parent.addChild(item)
        self._folder_items[folder.id] = item
        for child in folder.folders():
            self._add_folder_item(item, child)
        item.setExpanded(folder.expanded)
        return item

    def _show_current(self) -> None:
        """ Sync the tree cursor, breadcrumb and asset grid to the manager's current folder. """
        folder = self.manager.current_folder()
        self._syncing = True
        try:
            item = self._folder_items.get(folder.id)
            if item is not None and self.tree.currentItem() is not item:
                self.tree.setCurrentItem(item)
        finally:
            self._syncing = False

        self.breadcrumb.setText(" / ".join(self.manager.breadcrumbs()))
        self.btn_up.setEnabled(not folder.is_root)
        self.assets.clear()
        for asset in folder.assets():
            self.assets.addItem(AssetItem(asset))

    # --------- Actions ---------
    def _set_status(self, text: str) -> None:
        self.status.setText(text)

    def _report(self, result: OpResult) -> OpResult:
        if result.reason == Reason.DUPLICATE_NAME:
            QMessageBox.warning(self, "Name in use", result.message)
        elif not result.ok:
            self._set_status(result.message)
        return result

    def _create_folder(self) -> Optional[OpResult]:
        name = self.name_edit.text().strip()
        if not name:
            return None
        result = self._report(self.manager.add_folder(name))
        if result.ok:
            self.name_edit.clear()
        return result

    def _on_rename(self, item: QTreeWidgetItem | AssetItem) -> None:
        """ Ask for a new name then rename through the manager. """
        current_name = item.text(COL_LABEL) if isinstance(item, QTreeWidgetItem) else item.text()
        new_name, ok = QInputDialog.getText(self, "Rename", "New name:", text=current_name)
        if not (ok and new_name and new_name != current_name):
            return
        if isinstance(item, FolderItem):
            self._report(self.manager.rename_folder(item.id, new_name))
        elif isinstance(item, AssetItem):
            self._report(self.manager.rename_asset(item.id, new_name))
        else:
            raise ValueError(f"Unknown type {type(item)}")

    def _upload(self) -> None:
        paths, _ = QFileDialog.getOpenFileNames(self, "Upload Images", "", IMAGE_FILTER)
        if paths:
            self.upload_paths(paths)

    def upload_paths(self, paths: list[str]) -> Optional[OpResult]:
        """ Read the files and add them to the current folder as one batch. """
        try:
            sources = [UploadSource.from_path(p) for p in paths]
        except OSError as e:
            self._set_status(f"Could not open {e.filename}: {e.strerror}")
            return None
        # Blocks the GUI thread until the batch is encoded.
        # Hosts that already run an event loop await manager.upload instead.
        return self._report(asyncio.run(self.manager.upload(sources)))

    # --------- Tree events ---------
    def _on_current_changed(self, cur: Optional[QTreeWidgetItem], prev: Optional[QTreeWidgetItem]) -> None:
        if self._syncing or not isinstance(cur, FolderItem):
            return
        self.manager.select_folder(cur.id)

    def _on_expansion(self, item: QTreeWidgetItem, expanded: bool) -> None:
        """ Record a user expand/collapse in the library. The root stays open. """
        if self._syncing or not isinstance(item, FolderItem):
            return
        folder = find_folder(self.manager.tree, item.id)
        if folder is None:
            return
        if folder.is_root:
            if not expanded:
                self.tree.expandItem(item)
            return
        if folder.expanded != expanded:
            self.manager.toggle(item.id)

    def _on_tree_context_menu(self, pos: QPoint) -> None:
        """ Context menu when right-clicking a folder: rename, or create a folder inside it. """
        item = self.tree.itemAt(pos)
        if not isinstance(item, FolderItem):
            return

        menu = QMenu(self)
        act_rename = menu.addAction("Rename")
        act_create = menu.addAction("Create Folder")

        chosen = menu.exec(self.tree.viewport().mapToGlobal(pos))
        if not chosen:
            return

        if chosen == act_rename:
            self._on_rename(item)
        elif chosen == act_create:
            name, ok = QInputDialog.getText(self, "New Folder", "New Folder name:", QLineEdit.Normal, "New Folder")
            if ok:
                self._report(self.manager.add_folder(name, parent_id=item.id))

    def _on_asset_context_menu(self, pos: QPoint) -> None:
        item = self.assets.itemAt(pos)
        if not isinstance(item, AssetItem):
            return

        menu = QMenu(self)
        act_select = menu.addAction("Select")
        act_rename = menu.addAction("Rename")

        chosen = menu.exec(self.assets.viewport().mapToGlobal(pos))
        if not chosen:
            return

        if chosen == act_select:
            self.manager.select_asset(item.id)
        elif chosen == act_rename:
            self._on_rename(item)
