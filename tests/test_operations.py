import itertools

import pytest

from assetlib.core import operations as ops
from assetlib.core.nodes import Asset, Folder, ROOT_ID, default_tree
from assetlib.core.operations import AssetDraft, Reason
from assetlib.core.tree import all_ids, check_invariants, find_asset, find_folder, load, serialize


# --- Walkthrough

def test_vacation_walkthrough(id_factory):
    """ Create, expand, fill and rename a folder, refusing an empty name on the way. """
    tree = default_tree()

    res = ops.add_folder(tree, ROOT_ID, "Vacation", id_factory=id_factory)
    assert res.ok and res.node_ids == ("n1",)
    tree = res.tree
    (f1,) = tree.children
    assert (f1.id, f1.name, f1.expanded, f1.children) == ("n1", "Vacation", False, ())

    tree = ops.toggle_expansion(tree, "n1").tree
    assert find_folder(tree, "n1").expanded is True

    tree = ops.add_assets(tree, "n1", [AssetDraft("a.png", "<ref1>")], id_factory=id_factory).tree
    assert find_folder(tree, "n1").children == (Asset(id="n2", name="a.png", data="<ref1>"),)

    refused = ops.rename_folder(tree, "n1", "")
    assert refused.reason == Reason.VALIDATION_FAILED
    assert refused.tree is tree

    tree = ops.rename_folder(tree, "n1", "Trip").tree
    f1 = find_folder(tree, "n1")
    assert f1.name == "Trip"
    assert f1.expanded is True
    assert len(f1.children) == 1

    assert load(serialize(tree)).tree == tree


# --- add_folder

@pytest.mark.parametrize("name", ["", "   ", None])
def test_add_folder_rejects_blank_name(name):
    tree = default_tree()
    res = ops.add_folder(tree, ROOT_ID, name)
    assert res.reason == Reason.VALIDATION_FAILED
    assert res.tree is tree


def test_add_folder_trims_name(id_factory):
    res = ops.add_folder(default_tree(), ROOT_ID, "  Maps  ", id_factory=id_factory)
    assert res.tree.children[0].name == "Maps"


def test_add_folder_unknown_or_asset_parent(sample_tree):
    assert ops.add_folder(sample_tree, "missing", "X").reason == Reason.NOT_FOUND
    # n4 is an asset, assets cannot hold children
    res = ops.add_folder(sample_tree, "n4", "X")
    assert res.reason == Reason.NOT_FOUND
    assert res.tree is sample_tree


def test_add_folder_duplicate_names(sample_tree, id_factory):
    """ Sibling folders may share a name unless unique names are requested. """
    allowed = ops.add_folder(sample_tree, ROOT_ID, "Work", id_factory=lambda: "dup")
    assert allowed.ok
    assert [f.name for f in allowed.tree.folders()] == ["Vacation", "Work", "Work"]

    refused = ops.add_folder(sample_tree, ROOT_ID, "Work", unique_names=True)
    assert refused.reason == Reason.DUPLICATE_NAME
    assert refused.tree is sample_tree

    # Same name under a different parent is fine either way
    assert ops.add_folder(sample_tree, "n1", "Work", id_factory=lambda: "w2", unique_names=True).ok


def test_add_folder_appends_in_order(id_factory):
    tree = default_tree()
    for name in ["C", "A", "B"]:
        tree = ops.add_folder(tree, ROOT_ID, name, id_factory=id_factory).tree
    assert [c.name for c in tree.children] == ["C", "A", "B"]


def test_fresh_ids_skip_taken_ones(sample_tree):
    """ The factory is asked again until it produces an id nobody uses. """
    ids = iter(["n1", "root", "n6", "fresh"])
    res = ops.add_folder(sample_tree, ROOT_ID, "New", id_factory=lambda: next(ids))
    assert res.node_ids == ("fresh",)
    check_invariants(res.tree)


def test_ids_stay_unique_over_many_operations():
    counter = itertools.count()
    # Colliding factory: cycles through a small pool, so most candidates are taken
    pool = [f"x{i}" for i in range(64)]
    factory = lambda: pool[next(counter) % len(pool)]

    tree = default_tree()
    folder_ids = [ROOT_ID]
    for i in range(20):
        res = ops.add_folder(tree, folder_ids[i % len(folder_ids)], f"F{i}", id_factory=factory)
        tree = res.tree
        folder_ids.extend(res.node_ids)
        tree = ops.add_assets(tree, folder_ids[-1], [AssetDraft(f"{i}.png", "d")], id_factory=factory).tree
    ids = all_ids(tree)
    assert len(ids) == len(set(ids)) == 41
    check_invariants(tree)


# --- add_assets

def test_add_assets_batch_in_order(sample_tree):
    drafts = [AssetDraft("b.png", "ref-b"), AssetDraft("a.png", "ref-a")]
    ids = iter(["b1", "b2"])
    res = ops.add_assets(sample_tree, "n3", drafts, id_factory=lambda: next(ids))
    folder = find_folder(res.tree, "n3")
    assert [a.name for a in folder.assets()] == ["sand.png", "b.png", "a.png"]
    assert res.node_ids == ("b1", "b2")


@pytest.mark.parametrize("drafts", [
    [],
    [AssetDraft("", "ref")],
    [AssetDraft("ok.png", "ref"), AssetDraft("bad.png", "  ")],
])
def test_add_assets_rejects_invalid_batch(sample_tree, drafts):
    res = ops.add_assets(sample_tree, "n1", drafts)
    assert res.reason == Reason.VALIDATION_FAILED
    assert res.tree is sample_tree


def test_add_assets_unknown_folder(sample_tree):
    res = ops.add_assets(sample_tree, "missing", [AssetDraft("a.png", "ref")])
    assert res.reason == Reason.NOT_FOUND


# --- toggle / rename

def test_toggle_twice_restores(sample_tree):
    once = ops.toggle_expansion(sample_tree, "n3").tree
    twice = ops.toggle_expansion(once, "n3").tree
    assert find_folder(once, "n3").expanded is True
    assert twice == sample_tree


def test_toggle_unknown_or_asset(sample_tree):
    assert ops.toggle_expansion(sample_tree, "missing").reason == Reason.NOT_FOUND
    assert ops.toggle_expansion(sample_tree, "n4").reason == Reason.NOT_FOUND


def test_rename_folder_same_name_is_noop(sample_tree):
    res = ops.rename_folder(sample_tree, "n1", "Vacation")
    assert res.ok
    assert res.tree is sample_tree


def test_rename_folder_unique_names(sample_tree):
    assert ops.rename_folder(sample_tree, "n2", "Vacation").ok
    refused = ops.rename_folder(sample_tree, "n2", "Vacation", unique_names=True)
    assert refused.reason == Reason.DUPLICATE_NAME


def test_rename_root_and_asset(sample_tree):
    renamed = ops.rename_folder(sample_tree, ROOT_ID, "Library", unique_names=True).tree
    assert renamed.name == "Library" and renamed.id == ROOT_ID

    res = ops.rename_asset(sample_tree, "n5", " dune.png ")
    assert find_asset(res.tree, "n5").name == "dune.png"
    assert find_asset(res.tree, "n5").data == "data:image/png;base64,BBBB"
    assert ops.rename_asset(sample_tree, "n1", "x").reason == Reason.NOT_FOUND
    assert ops.rename_asset(sample_tree, "n5", "").reason == Reason.VALIDATION_FAILED


# --- Structural sharing & immutability

def test_unchanged_subtrees_are_reused(sample_tree):
    """ Only the folders on the path to the change are copied. """
    res = ops.add_assets(sample_tree, "n3", [AssetDraft("c.png", "ref")], id_factory=lambda: "c1")
    new = res.tree

    assert new is not sample_tree
    assert find_folder(new, "n1") is not find_folder(sample_tree, "n1")
    assert find_folder(new, "n3") is not find_folder(sample_tree, "n3")
    # Off-path nodes are the same objects
    assert find_folder(new, "n2") is find_folder(sample_tree, "n2")
    assert find_asset(new, "n4") is find_asset(sample_tree, "n4")
    assert find_asset(new, "n5") is find_asset(sample_tree, "n5")


def test_input_tree_is_never_modified(sample_tree):
    before = serialize(sample_tree)
    ops.add_folder(sample_tree, "n3", "Deep")
    ops.add_assets(sample_tree, ROOT_ID, [AssetDraft("r.png", "ref")])
    ops.toggle_expansion(sample_tree, "n1")
    ops.rename_folder(sample_tree, "n2", "Jobs")
    ops.rename_asset(sample_tree, "n6", "graph.png")
    assert serialize(sample_tree) == before


# --- Navigation

def test_resolve_path(sample_tree):
    nav = ops.resolve_path(sample_tree, ["n1", "n3"])
    assert nav.folder.name == "Beach"
    assert nav.resolved == ("root", "n1", "n3")
    assert not nav.truncated

    # A leading root id is accepted
    assert ops.resolve_path(sample_tree, ["root", "n1"]).folder.id == "n1"
    assert ops.navigate(sample_tree, []) is sample_tree


@pytest.mark.parametrize("path, expected", [
    (["n1", "missing", "n3"], "n1"),
    (["n3"], ROOT_ID),            # not a direct child of the root
    (["n1", "n4"], "n1"),         # an asset, not a folder
    (["n2", "n6", "x"], "n2"),
])
def test_resolve_path_truncates(sample_tree, path, expected):
    nav = ops.resolve_path(sample_tree, path)
    assert nav.truncated
    assert nav.folder.id == expected
    assert isinstance(nav.folder, Folder)
