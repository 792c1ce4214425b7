from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, Signal

from assetlib.storage.adapter import PersistenceAdapter
from . import operations as ops
from .config import DEFAULT_STORAGE_KEY
from .ingest import Encoder, IngestError, UploadSource, ingest, to_data_uri
from .legacy import LEGACY_KEYS
from .nodes import Asset, Folder, IdFactory, ROOT_ID, default_tree, new_id
from .operations import AssetDraft, OpResult, Reason
from .selection import SelectionController
from .tree import LoadResult, find_asset, load, serialize

log = logging.getLogger(__name__)


class AssetTreeManager(QObject):
    """ Owner of the library tree. Every change goes through here:
    the operation builds a new tree, the tree is swapped in, the selection is re-resolved against it, the tree is
    written to the store, then listeners are told.
    A failed write is reported on ``persistenceFailed`` but the in-memory tree stays as it is.
    """
    treeChanged = Signal(object)
    selectionChanged = Signal(object)
    assetSelected = Signal(object)
    persistenceFailed = Signal(str)

    def __init__(self, store: PersistenceAdapter, key: str = DEFAULT_STORAGE_KEY, *,
                 id_factory: IdFactory = new_id, unique_folder_names: bool = False,
                 on_select: Callable[[Asset], None] | None = None, start_folder: str = ROOT_ID,
                 parent: QObject | None = None):
        super().__init__(parent)
        self.store = store
        self.key = key
        self.id_factory = id_factory
        self.unique_folder_names = unique_folder_names
        self.on_select = on_select
        self.last_error: Optional[str] = None

        self.load_result = self._load()
        self._tree: Folder = self.load_result.tree
        self.selection = SelectionController(self._tree, start_folder)

    # --------- Persistence ---------
    def _load(self) -> LoadResult:
        """ Read the stored tree, falling back to an empty library on any failure.
        If our slot is empty an earlier manager's slot is tried, and whatever we end up with is written back.
        """
        try:
            blob = self.store.get(self.key)
            if blob is None:
                for legacy_key in LEGACY_KEYS:
                    blob = self.store.get(legacy_key)
                    if blob is not None:
                        log.info("Importing asset tree from legacy slot %r", legacy_key)
                        break
        except Exception as e:
            self.last_error = f"Could not read the asset library: {e}"
            log.warning(self.last_error)
            return LoadResult(default_tree(), fallback=True, error=str(e))

        result = load(blob)
        if blob is None or result.upgraded:
            self._persist(result.tree)
        elif result.fallback:
            # keep the unreadable blob until the user changes something
            self.last_error = f"Stored asset library is unreadable: {result.error}"
        return result

    def _persist(self, tree: Folder) -> bool:
        try:
            self.store.set(self.key, serialize(tree))
        except Exception as e:
            self.last_error = f"Could not save the asset library: {e}"
            log.warning(self.last_error)
            self.persistenceFailed.emit(self.last_error)
            return False
        self.last_error = None
        return True

    def save(self) -> OpResult:
        """ Write the current tree again, e.g. after an earlier write failed. """
        if not self._persist(self._tree):
            return OpResult.fail(self._tree, Reason.PERSISTENCE_FAILURE, self.last_error)
        return OpResult(self._tree)

    def _apply(self, result: OpResult) -> OpResult:
        if not result.ok:
            log.debug("Tree request refused (%s): %s", result.reason.value, result.message)
            return result
        if result.tree is self._tree:
            return result

        self._tree = result.tree
        lost_selection = self.selection.update_tree(self._tree)
        self._persist(self._tree)
        log.debug("Tree updated, nodes %s", ", ".join(result.node_ids))
        self.treeChanged.emit(self._tree)
        if lost_selection:
            self.selectionChanged.emit(self.current_folder())
        return result

    # --------- Read access ---------
    @property
    def tree(self) -> Folder:
        return self._tree

    def current_folder(self) -> Folder:
        return self.selection.current_folder()

    def path(self) -> tuple[str, ...]:
        return self.selection.path()

    def breadcrumbs(self) -> list[str]:
        """ Folder names from the root down to the current folder. """
        names = []
        folder = self._tree
        names.append(folder.name)
        for fid in self.path()[1:]:
            folder = folder.child(fid)
            names.append(folder.name)
        return names

    # --------- Mutations ---------
    def add_folder(self, name: str, parent_id: str | None = None) -> OpResult:
        """ Create a folder, in the current folder unless ``parent_id`` is given. """
        target = parent_id or self.selection.current_id
        return self._apply(ops.add_folder(self._tree, target, name, id_factory=self.id_factory,
                                          unique_names=self.unique_folder_names))

    def add_assets(self, drafts: Iterable[AssetDraft], parent_id: str | None = None) -> OpResult:
        target = parent_id or self.selection.current_id
        return self._apply(ops.add_assets(self._tree, target, drafts, id_factory=self.id_factory))

    def toggle(self, folder_id: str) -> OpResult:
        return self._apply(ops.toggle_expansion(self._tree, folder_id))

    def rename_folder(self, folder_id: str, new_name: str) -> OpResult:
        return self._apply(ops.rename_folder(self._tree, folder_id, new_name,
                                             unique_names=self.unique_folder_names))

    def rename_asset(self, asset_id: str, new_name: str) -> OpResult:
        return self._apply(ops.rename_asset(self._tree, asset_id, new_name))

    async def upload(self, sources: Iterable[UploadSource], encoder: Encoder = to_data_uri,
                     parent_id: str | None = None) -> OpResult:
        """ Encode an upload batch and add it as one change once every file is read.
        The target folder is fixed when the upload starts, so navigating meanwhile does not redirect it.
        """
        target = parent_id or self.selection.current_id
        try:
            drafts = await ingest(sources, encoder)
        except IngestError as e:
            log.warning("Upload discarded: %s", e)
            return OpResult.fail(self._tree, Reason.INGEST_FAILED, str(e))
        return self.add_assets(drafts, target)

    # --------- Navigation / selection ---------
    def _moved(self, changed: bool) -> bool:
        if changed:
            self.selectionChanged.emit(self.current_folder())
        return changed

    def enter(self, child_id: str) -> bool:
        return self._moved(self.selection.enter(child_id))

    def up(self) -> bool:
        return self._moved(self.selection.up())

    def select_folder(self, folder_id: str) -> bool:
        if folder_id == self.selection.current_id:
            return False
        return self._moved(self.selection.select(folder_id))

    def select_asset(self, asset_id: str) -> OpResult:
        """ Hand the asset to the ``on_select`` callback, which is expected to close the browser. """
        asset = find_asset(self._tree, asset_id)
        if asset is None:
            return OpResult.fail(self._tree, Reason.NOT_FOUND, f"No asset with id {asset_id!r}")
        if self.on_select is not None:
            self.on_select(asset)
        self.assetSelected.emit(asset)
        return OpResult(self._tree, node_ids=(asset_id,))
