from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from jsonschema.validators import Draft202012Validator

from .legacy import is_legacy_blob, upgrade_legacy
from .nodes import Asset, Folder, Node, ROOT_ID, default_tree
from .schema import TREE_SCHEMA, TREE_VERSION

log = logging.getLogger(__name__)

_validator = Draft202012Validator(TREE_SCHEMA)


@dataclass(frozen=True)
class LoadResult:
    """ Outcome of reading a stored blob. ``fallback`` is set whenever the default tree was used instead. """
    tree: Folder
    fallback: bool = False
    error: Optional[str] = None
    upgraded: bool = False


def validate_tree_dict(data: dict) -> None:
    """ Validates the given dict to follow the asset tree schema.

    Parameters
    ----------
    data : dict
        The decoded blob.

    Raises
    ------
    ValueError
        if invalid schema detected.
    """
    errors = sorted(_validator.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        lines = []
        for e in errors:
            loc = "/".join(map(str, e.path)) or "<root>"
            lines.append(f"- at {loc}: {e.message}")
        raise ValueError("Invalid asset tree:\n" + "\n".join(lines))


def check_invariants(tree: Folder) -> None:
    """ Raise ValueError if the root id is wrong or any id is used twice. """
    if tree.id != ROOT_ID:
        raise ValueError(f"Root folder must have id {ROOT_ID!r}, got {tree.id!r}")
    seen: set[str] = set()
    for node, _ in walk(tree):
        if node.id in seen:
            raise ValueError(f"Duplicate node id {node.id!r}")
        seen.add(node.id)


def load(blob: str | bytes | None) -> LoadResult:
    """ Deserialize a stored blob into a tree. Never raises: anything unreadable gives the default tree.

    Parameters
    ----------
    blob : str, bytes or None
        The JSON text from storage, None if nothing was stored.

    Returns
    -------
    LoadResult
        The tree plus whether a fallback or a legacy upgrade happened.
    """
    if blob is None or blob == "" or blob == b"":
        return LoadResult(default_tree(), fallback=True, error="no stored tree")

    try:
        data = json.loads(blob)
        upgraded = False
        if is_legacy_blob(data):
            data = upgrade_legacy(data)
            upgraded = True
        validate_tree_dict(data)
        tree = Folder.model_validate(data["tree"])
        check_invariants(tree)
    except (ValueError, TypeError, RecursionError) as e:
        log.warning("Stored asset tree is unreadable, using an empty library: %s", e)
        return LoadResult(default_tree(), fallback=True, error=str(e))

    if upgraded:
        log.info("Upgraded legacy asset tree blob to %s", TREE_VERSION)
    return LoadResult(tree, upgraded=upgraded)


def to_dict(tree: Folder) -> dict:
    return {"version": TREE_VERSION, "tree": tree.model_dump(mode="json")}


def serialize(tree: Folder) -> str:
    """ JSON text for the tree, validated against the schema before it is handed to storage. """
    data = to_dict(tree)
    validate_tree_dict(data)
    return json.dumps(data, ensure_ascii=False)


# --------- Queries ---------
def walk(tree: Folder, parent: Folder | None = None) -> Iterator[tuple[Node, Folder | None]]:
    """ Depth-first, pre-order walk yielding (node, parent). Children are visited in insertion order. """
    yield tree, parent
    for child in tree.children:
        if isinstance(child, Folder):
            yield from walk(child, tree)
        else:
            yield child, tree


def node_path(tree: Folder, node_id: str) -> list[Node] | None:
    """ Nodes from the root down to the node with ``node_id`` inclusive, None if it is not in the tree. """
    if tree.id == node_id:
        return [tree]
    for child in tree.children:
        if child.id == node_id:
            return [tree, child]
        if isinstance(child, Folder):
            sub = node_path(child, node_id)
            if sub is not None:
                return [tree, *sub]
    return None


def path_to(tree: Folder, node_id: str) -> tuple[str, ...] | None:
    """ Ids from the root down to ``node_id`` inclusive. """
    nodes = node_path(tree, node_id)
    if nodes is None:
        return None
    return tuple(n.id for n in nodes)


def find_node(tree: Folder, node_id: str) -> Node | None:
    for node, _ in walk(tree):
        if node.id == node_id:
            return node
    return None


def find_folder(tree: Folder, folder_id: str) -> Folder | None:
    node = find_node(tree, folder_id)
    return node if isinstance(node, Folder) else None


def find_asset(tree: Folder, asset_id: str) -> Asset | None:
    node = find_node(tree, asset_id)
    return node if isinstance(node, Asset) else None


def find_parent(tree: Folder, node_id: str) -> Folder | None:
    """ The folder directly containing ``node_id``. None for the root and for unknown ids. """
    for node, parent in walk(tree):
        if node.id == node_id:
            return parent
    return None


def all_ids(tree: Folder) -> list[str]:
    return [node.id for node, _ in walk(tree)]
