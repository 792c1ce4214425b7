""" Readers for the two unversioned tree layouts written by earlier asset managers.

- id-keyed: ``{"id", "name", "children": [...], "isExpanded"}`` folders and ``{"id", "name", "url"}`` assets.
- name-keyed: ``{"name", "folders": [...], "images": ["data:..."]}``, images carry no name or id.

Both are converted into the current versioned layout so the normal schema validation applies afterwards.
"""
from __future__ import annotations

from typing import Any

from .nodes import IdFactory, ROOT_ID, ROOT_NAME, new_id
from .schema import TREE_VERSION

# Storage keys used by the earlier managers
LEGACY_KEYS = ("assetManagerTree", "assetManager")


def is_legacy_blob(data: Any) -> bool:
    if not isinstance(data, dict) or "version" in data:
        return False
    return "children" in data or "folders" in data or "images" in data


def upgrade_legacy(data: dict, id_factory: IdFactory = new_id) -> dict:
    """ Convert an unversioned blob into the current layout.

    Parameters
    ----------
    data : dict
        The decoded legacy blob.
    id_factory : callable
        Source of ids for nodes that have none, or whose stored id is already taken.

    Returns
    -------
    dict
        A dict of the form ``{"version": ..., "tree": ...}``.

    Raises
    ------
    ValueError
        If the blob matches neither layout.
    """
    used: set[str] = {ROOT_ID}

    def take_id(candidate: Any) -> str:
        cid = str(candidate) if candidate not in (None, "") else ""
        if not cid or cid in used:
            cid = id_factory()
            while cid in used:
                cid = id_factory()
        used.add(cid)
        return cid

    def by_id_node(node: dict) -> dict:
        if not isinstance(node, dict):
            raise ValueError(f"Unexpected legacy node {node!r}")
        if "children" in node:
            return {
                "kind": "folder",
                "id": take_id(node.get("id")),
                "name": str(node.get("name") or "Folder"),
                "expanded": bool(node.get("isExpanded", False)),
                "children": [by_id_node(c) for c in node["children"]],
            }
        return {
            "kind": "asset",
            "id": take_id(node.get("id")),
            "name": str(node.get("name") or "image"),
            "data": node.get("url") or node.get("data") or "",
        }

    def by_name_folder(node: dict) -> dict:
        if not isinstance(node, dict):
            raise ValueError(f"Unexpected legacy folder {node!r}")
        children = [by_name_folder(f) for f in node.get("folders", [])]
        for i, src in enumerate(node.get("images", []), start=1):
            children.append({"kind": "asset", "id": take_id(None), "name": f"image-{i}", "data": src})
        return {
            "kind": "folder",
            "id": take_id(None),
            "name": str(node.get("name") or "Folder"),
            "expanded": False,
            "children": children,
        }

    if "children" in data:
        root_children = [by_id_node(c) for c in data["children"]]
        root_expanded = bool(data.get("isExpanded", False))
    elif "folders" in data or "images" in data:
        root_children = by_name_folder(data)["children"]
        root_expanded = False
    else:
        raise ValueError("Blob is not a known legacy asset tree")

    tree = {
        "kind": "folder",
        "id": ROOT_ID,
        "name": str(data.get("name") or ROOT_NAME),
        "expanded": root_expanded,
        "children": root_children,
    }
    return {"version": TREE_VERSION, "tree": tree}
