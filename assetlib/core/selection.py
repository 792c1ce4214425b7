from __future__ import annotations

from typing import Iterable, Protocol

from .nodes import Folder, ROOT_ID
from .operations import resolve_path
from .tree import find_folder, find_parent, path_to


# ---------- Selection seam ----------
class Selection(Protocol):
    """ What the browser is currently looking at. Both implementations re-resolve against every new tree. """

    def current_folder(self) -> Folder:
        ...

    def enter(self, child_id: str) -> bool:
        ...

    def up(self) -> bool:
        ...

    def select(self, folder_id: str) -> bool:
        ...

    def path(self) -> tuple[str, ...]:
        ...

    def update_tree(self, tree: Folder) -> bool:
        ...


class SelectionController:
    """ Tracks the current folder by id.
    The folder object is looked up in the latest tree on every access, so a replaced tree never leaves a stale
    folder behind. If the id disappears from the tree the selection falls back to the root.
    """

    def __init__(self, tree: Folder, folder_id: str = ROOT_ID):
        self._tree = tree
        self._folder_id = ROOT_ID
        self.select(folder_id)

    @property
    def tree(self) -> Folder:
        return self._tree

    @property
    def current_id(self) -> str:
        return self._folder_id

    def current_folder(self) -> Folder:
        return find_folder(self._tree, self._folder_id) or self._tree

    def update_tree(self, tree: Folder) -> bool:
        """ Swap in a new tree. Returns True if the current folder was lost and the selection reset to root. """
        self._tree = tree
        if find_folder(tree, self._folder_id) is None:
            self._folder_id = ROOT_ID
            return True
        return False

    def select(self, folder_id: str) -> bool:
        """ Jump to any folder in the tree. """
        if find_folder(self._tree, folder_id) is None:
            return False
        self._folder_id = folder_id
        return True

    def enter(self, child_id: str) -> bool:
        """ Move into a direct child folder of the current folder. """
        if not isinstance(self.current_folder().child(child_id), Folder):
            return False
        self._folder_id = child_id
        return True

    def up(self) -> bool:
        """ Move to the parent folder. A no-op at the root. """
        parent = find_parent(self._tree, self.current_folder().id)
        if parent is None:
            return False
        self._folder_id = parent.id
        return True

    def path(self) -> tuple[str, ...]:
        return path_to(self._tree, self.current_folder().id)


class PathSelection:
    """ Tracks the current folder as a breadcrumb of folder ids below the root.
    Resolution is forgiving: segments that no longer resolve are dropped, leaving the deepest folder that does.
    """

    def __init__(self, tree: Folder, path: Iterable[str] = ()):
        self._tree = tree
        self._path: list[str] = []
        self._set_path(path)

    def _set_path(self, path: Iterable[str]) -> bool:
        nav = resolve_path(self._tree, path)
        self._path = list(nav.resolved[1:])
        return nav.truncated

    @property
    def tree(self) -> Folder:
        return self._tree

    def current_folder(self) -> Folder:
        return resolve_path(self._tree, self._path).folder

    def update_tree(self, tree: Folder) -> bool:
        """ Swap in a new tree, trimming the breadcrumb if part of it no longer resolves. """
        self._tree = tree
        return self._set_path(self._path)

    def select(self, folder_id: str) -> bool:
        ids = path_to(self._tree, folder_id)
        if ids is None or find_folder(self._tree, folder_id) is None:
            return False
        self._path = list(ids[1:])
        return True

    def enter(self, child_id: str) -> bool:
        if not isinstance(self.current_folder().child(child_id), Folder):
            return False
        self._path.append(child_id)
        return True

    def up(self) -> bool:
        if not self._path:
            return False
        self._path.pop()
        return True

    def path(self) -> tuple[str, ...]:
        return (self._tree.id, *self._path)
