from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from .nodes import Asset, Folder, IdFactory, Node, ROOT_ID, new_id
from .tree import all_ids, find_asset, find_folder, find_parent, node_path


class Reason(str, Enum):
    """ Why a request left the tree unchanged. """
    NOT_FOUND = "not_found"
    VALIDATION_FAILED = "validation_failed"
    DUPLICATE_NAME = "duplicate_name"
    INGEST_FAILED = "ingest_failed"
    PERSISTENCE_FAILURE = "persistence_failure"


@dataclass(frozen=True)
class OpResult:
    """ Result of a tree operation. On failure ``tree`` is the untouched input tree. """
    tree: Folder
    reason: Optional[Reason] = None
    message: str = ""
    node_ids: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def fail(cls, tree: Folder, reason: Reason, message: str) -> OpResult:
        return cls(tree=tree, reason=reason, message=message)


@dataclass(frozen=True)
class AssetDraft:
    """ An asset waiting to be added; ``data`` must already be an embeddable reference. """
    name: str
    data: str


@dataclass(frozen=True)
class Navigation:
    folder: Folder
    resolved: tuple[str, ...]
    truncated: bool = False


# --------- Copy-on-write helpers ---------
def _replace(tree: Folder, node_id: str, fn: Callable[[Node], Node]) -> Folder:
    """ Return a new tree with ``node_id`` replaced by ``fn(node)``.
    Only the folders on the root→node path are copied, every other subtree is reused as is.
    The caller has already checked that ``node_id`` exists.
    """
    path = node_path(tree, node_id)
    new_node = fn(path[-1])
    for parent, old in zip(reversed(path[:-1]), reversed(path[1:])):
        idx = next(i for i, c in enumerate(parent.children) if c is old)
        children = parent.children[:idx] + (new_node,) + parent.children[idx + 1:]
        new_node = parent.model_copy(update={"children": children})
    return new_node


def _fresh_ids(tree: Folder, count: int, id_factory: IdFactory) -> list[str]:
    taken = set(all_ids(tree))
    out = []
    while len(out) < count:
        nid = id_factory()
        if nid and nid not in taken:
            taken.add(nid)
            out.append(nid)
    return out


def _clean_name(name: str | None) -> str:
    return (name or "").strip()


def _append(children: Sequence[Node]) -> Callable[[Node], Node]:
    def _do(folder: Folder) -> Folder:
        return folder.model_copy(update={"children": folder.children + tuple(children)})
    return _do


# --------- Operations ---------
def add_folder(tree: Folder, parent_id: str, name: str, *, id_factory: IdFactory = new_id,
               unique_names: bool = False) -> OpResult:
    """ Append a new, collapsed, empty folder to ``parent_id``.

    Parameters
    ----------
    tree : Folder
        The current tree.
    parent_id : str
        Folder to create in.
    name : str
        Display name, surrounding whitespace is dropped.
    id_factory : callable
        Source of new ids.
    unique_names : bool, default=False
        Refuse the name if a sibling folder already has it.

    Returns
    -------
    OpResult
        ``node_ids`` holds the new folder id on success.
    """
    nm = _clean_name(name)
    if not nm:
        return OpResult.fail(tree, Reason.VALIDATION_FAILED, "Folder name must not be empty")
    parent = find_folder(tree, parent_id)
    if parent is None:
        return OpResult.fail(tree, Reason.NOT_FOUND, f"No folder with id {parent_id!r}")
    if unique_names and any(f.name == nm for f in parent.folders()):
        return OpResult.fail(tree, Reason.DUPLICATE_NAME, f'A folder named "{nm}" already exists here')

    fid, = _fresh_ids(tree, 1, id_factory)
    folder = Folder(id=fid, name=nm)
    return OpResult(_replace(tree, parent_id, _append([folder])), node_ids=(fid,))


def add_assets(tree: Folder, parent_id: str, assets: Iterable[AssetDraft], *,
               id_factory: IdFactory = new_id) -> OpResult:
    """ Append assets to ``parent_id`` as one batch, in the order given. Either all are added or none. """
    drafts = list(assets)
    if not drafts:
        return OpResult.fail(tree, Reason.VALIDATION_FAILED, "No assets to add")
    for d in drafts:
        if not _clean_name(d.name) or not (d.data or "").strip():
            return OpResult.fail(tree, Reason.VALIDATION_FAILED, f"Asset {d.name!r} needs a name and data")
    if find_folder(tree, parent_id) is None:
        return OpResult.fail(tree, Reason.NOT_FOUND, f"No folder with id {parent_id!r}")

    ids = _fresh_ids(tree, len(drafts), id_factory)
    new_assets = [Asset(id=aid, name=_clean_name(d.name), data=d.data) for aid, d in zip(ids, drafts)]
    return OpResult(_replace(tree, parent_id, _append(new_assets)), node_ids=tuple(ids))


def toggle_expansion(tree: Folder, folder_id: str) -> OpResult:
    if find_folder(tree, folder_id) is None:
        return OpResult.fail(tree, Reason.NOT_FOUND, f"No folder with id {folder_id!r}")
    new_tree = _replace(tree, folder_id, lambda f: f.model_copy(update={"expanded": not f.expanded}))
    return OpResult(new_tree, node_ids=(folder_id,))


def rename_folder(tree: Folder, folder_id: str, new_name: str, *, unique_names: bool = False) -> OpResult:
    """ Rename a folder, keeping its id, children and expansion. Renaming to the same name returns the same tree. """
    nm = _clean_name(new_name)
    if not nm:
        return OpResult.fail(tree, Reason.VALIDATION_FAILED, "Folder name must not be empty")
    folder = find_folder(tree, folder_id)
    if folder is None:
        return OpResult.fail(tree, Reason.NOT_FOUND, f"No folder with id {folder_id!r}")
    if folder.name == nm:
        return OpResult(tree, node_ids=(folder_id,))
    parent = find_parent(tree, folder_id)
    if unique_names and parent is not None and any(f.name == nm for f in parent.folders()):
        return OpResult.fail(tree, Reason.DUPLICATE_NAME, f'A folder named "{nm}" already exists here')

    return OpResult(_replace(tree, folder_id, lambda f: f.model_copy(update={"name": nm})), node_ids=(folder_id,))


def rename_asset(tree: Folder, asset_id: str, new_name: str) -> OpResult:
    nm = _clean_name(new_name)
    if not nm:
        return OpResult.fail(tree, Reason.VALIDATION_FAILED, "Asset name must not be empty")
    asset = find_asset(tree, asset_id)
    if asset is None:
        return OpResult.fail(tree, Reason.NOT_FOUND, f"No asset with id {asset_id!r}")
    if asset.name == nm:
        return OpResult(tree, node_ids=(asset_id,))
    return OpResult(_replace(tree, asset_id, lambda a: a.model_copy(update={"name": nm})), node_ids=(asset_id,))


# --------- Navigation ---------
def resolve_path(tree: Folder, path: Iterable[str]) -> Navigation:
    """ Walk folder ids down from the root. Stops at the first id that is not a child folder of the
    folder reached so far and returns that folder, with ``truncated`` set.
    A leading root id is accepted and ignored.
    """
    segments = list(path)
    if segments and segments[0] == ROOT_ID:
        segments = segments[1:]

    current = tree
    resolved = [tree.id]
    for seg in segments:
        nxt = current.child(seg)
        if not isinstance(nxt, Folder):
            return Navigation(current, tuple(resolved), truncated=True)
        current = nxt
        resolved.append(seg)
    return Navigation(current, tuple(resolved))


def navigate(tree: Folder, path: Iterable[str]) -> Folder:
    return resolve_path(tree, path).folder
