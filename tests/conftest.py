import itertools
import os
from io import BytesIO

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image as PILImage
from PySide6.QtCore import QSettings
from PySide6.QtWidgets import QInputDialog

from assetlib.core import operations as ops
from assetlib.core.manager import AssetTreeManager
from assetlib.core.nodes import default_tree
from assetlib.core.operations import AssetDraft
from assetlib.storage import DatabaseManager, MemoryStore


# --- Tree fixtures -----------------------------------------------------------------
@pytest.fixture()
def id_factory():
    """ Deterministic ids: n1, n2, ... """
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"


@pytest.fixture()
def sample_tree(id_factory):
    """
    Root
    ├── Vacation (n1)
    │   ├── Beach (n3)
    │   │   └── sand.png (n5)
    │   └── sea.png (n4)
    └── Work (n2)
        └── chart.png (n6)
    """
    t = default_tree()
    t = ops.add_folder(t, "root", "Vacation", id_factory=id_factory).tree
    t = ops.add_folder(t, "root", "Work", id_factory=id_factory).tree
    t = ops.add_folder(t, "n1", "Beach", id_factory=id_factory).tree
    t = ops.add_assets(t, "n1", [AssetDraft("sea.png", "data:image/png;base64,AAAA")], id_factory=id_factory).tree
    t = ops.add_assets(t, "n3", [AssetDraft("sand.png", "data:image/png;base64,BBBB")], id_factory=id_factory).tree
    t = ops.add_assets(t, "n2", [AssetDraft("chart.png", "https://example.com/chart.png")],
                       id_factory=id_factory).tree
    return t


# --- Storage fixtures -----------------------------------------------------------------
@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def settings(tmp_path):
    """ File-backed QSettings so tests never touch the user's real settings. """
    return QSettings(str(tmp_path / "settings.ini"), QSettings.IniFormat)


@pytest.fixture()
def db(tmp_path):
    dbm = DatabaseManager()
    dbm.open(tmp_path / "library.db")
    yield dbm
    dbm.dispose()


@pytest.fixture()
def manager(qapp, store, id_factory):
    return AssetTreeManager(store, id_factory=id_factory)


# --- Upload fixtures -----------------------------------------------------------------
@pytest.fixture()
def make_image_bytes():
    def _mk(color: str = "green", size=(8, 6), fmt: str = "PNG") -> bytes:
        buf = BytesIO()
        PILImage.new("RGB", size, color).save(buf, format=fmt)
        return buf.getvalue()

    return _mk


@pytest.fixture()
def make_png(tmp_path, make_image_bytes):
    def _make_png(name="im", color="green"):
        out = tmp_path / f"{name}.png"
        out.write_bytes(make_image_bytes(color))
        return str(out)

    return _make_png


# --- UI patching fixtures ------------------
class _FakeContextMenu:
    """ Fake context menu with decision preselected. """
    decision = "Rename"

    def __init__(self, *args, **kwargs):
        self._actions = []
        self._chosen = None

    def addAction(self, text):
        # Create a tiny action stub with identity semantics
        act = type("Act", (), {})()
        act.text = text
        self._actions.append(act)
        # Preselect decision
        if text == self.decision:
            self._chosen = act
        return act

    def actions(self):
        return list(self._actions)

    # Mimic QMenu.exec(...) API and return the “clicked” action
    def exec(self, *args, **kwargs):
        return self._chosen


@pytest.fixture()
def set_context_menu(monkeypatch):
    """ Sets the context menu option to return the given decision. """
    def _set_menu(src, decision):
        monkeypatch.setattr(_FakeContextMenu, "decision", decision)
        monkeypatch.setattr(src, "QMenu", _FakeContextMenu)

    return _set_menu


@pytest.fixture()
def set_dialog_text(monkeypatch):
    """ Set the text for the next item in the dialog entry box. """

    def set_text(name, ok=True):
        def get_text_cycle(*args, **kwargs):
            return name, ok

        monkeypatch.setattr(QInputDialog, "getText", staticmethod(get_text_cycle))

    return set_text
