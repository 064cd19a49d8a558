"""Tree Serialization - Export and import of TreeStore data.

Interchange shape, per node::

    {"id": str, "name": str, "category": str,
     "children": [str, ...]?, "movable": bool?, "renamable": bool?}

and for a whole tree ``{"rootId": str, "nodes": {id: node}}``. ``children``
is present exactly for containers. The folder flag is derived on export
when a consumer needs it, never read back as authoritative.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rostertree.tree.errors import TreeFormatError
from rostertree.tree.store import TreeStore
from rostertree.tree.TreeNode import NodeCategory, TreeNode


def serialize_node(node: TreeNode, include_folder_flag: bool = False) -> dict[str, Any]:
    """Serialize a TreeNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.
        include_folder_flag: Add a derived ``isFolder`` key.

    Returns:
        Dict suitable for JSON serialization. Capability flags are only
        written when they differ from the default (True).
    """
    result: dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "category": node.category.value,
    }
    if node.children is not None:
        result["children"] = list(node.children)
    if not node.movable:
        result["movable"] = False
    if not node.renamable:
        result["renamable"] = False
    if include_folder_flag:
        result["isFolder"] = node.is_folder
    return result


def serialize_tree(store: TreeStore, include_folder_flag: bool = False) -> dict[str, Any]:
    """Serialize a whole tree to ``{rootId, nodes}``.

    Nodes are emitted in pre-order from the root.
    """
    return {
        "rootId": store.root_id,
        "nodes": {
            node_id: serialize_node(store.get(node_id), include_folder_flag)
            for node_id in store.walk()
        },
    }


def deserialize_node(node_id: str, data: Any) -> TreeNode:
    """Build a TreeNode from its serialized dict.

    Raises:
        TreeFormatError: If fields are missing or of the wrong type.
    """
    if not isinstance(data, dict):
        raise TreeFormatError(f"Node '{node_id}' must be an object", node_id)
    declared = data.get("id", node_id)
    if declared != node_id:
        raise TreeFormatError(f"Node key '{node_id}' does not match id '{declared}'", node_id)
    name = data.get("name")
    if not isinstance(name, str):
        raise TreeFormatError(f"Node '{node_id}' needs a string name", node_id)
    try:
        category = NodeCategory.parse(data.get("category", NodeCategory.DIVISION.value))
    except ValueError as e:
        raise TreeFormatError(f"Node '{node_id}': {e}", node_id) from e

    children = data.get("children")
    if children is not None:
        if not isinstance(children, list) or not all(isinstance(c, str) for c in children):
            raise TreeFormatError(f"Node '{node_id}' children must be a list of ids", node_id)
        children = list(children)

    flags = {}
    for flag in ("movable", "renamable"):
        value = data.get(flag, True)
        if not isinstance(value, bool):
            raise TreeFormatError(f"Node '{node_id}' {flag} must be a boolean", node_id)
        flags[flag] = value

    return TreeNode(id=node_id, name=name, category=category, children=children, **flags)


def deserialize_tree(data: Any) -> TreeStore:
    """Build a TreeStore from ``{rootId, nodes}``.

    Raises:
        TreeFormatError: If the data is malformed or violates the tree
            invariants (missing children, shared children, orphans, cycles).
    """
    if not isinstance(data, dict):
        raise TreeFormatError("Tree data must be an object")
    root_id = data.get("rootId")
    nodes = data.get("nodes")
    if not isinstance(root_id, str) or not isinstance(nodes, dict):
        raise TreeFormatError("Tree data needs a string 'rootId' and a 'nodes' object")
    if root_id not in nodes:
        raise TreeFormatError(f"Root '{root_id}' is not among the nodes", root_id)

    store = TreeStore(deserialize_node(root_id, nodes[root_id]))
    for node_id, raw in nodes.items():
        if node_id != root_id:
            store.insert(deserialize_node(node_id, raw))

    problems = store.validate()
    if problems:
        raise TreeFormatError("Invalid tree: " + "; ".join(problems))
    return store


def from_items(items: dict[str, Any], root_id: str = "root") -> TreeStore:
    """Import the item format used by browser tree widgets.

    Each item looks like ``{"index", "isFolder", "children", "data":
    {"name", "type"}, "canMove", "canRename"}``. ``isFolder`` is ignored:
    the presence of ``children`` decides whether an item is a container.
    """
    nodes: dict[str, Any] = {}
    for key, item in items.items():
        if not isinstance(item, dict):
            raise TreeFormatError(f"Item '{key}' must be an object", key)
        payload = item.get("data") or {}
        node: dict[str, Any] = {
            "id": str(item.get("index", key)),
            "name": payload.get("name", ""),
            "category": payload.get("type", NodeCategory.DIVISION.value),
            "movable": item.get("canMove", True),
            "renamable": item.get("canRename", True),
        }
        if item.get("children") is not None:
            node["children"] = [str(c) for c in item["children"]]
        nodes[str(key)] = node
    return deserialize_tree({"rootId": root_id, "nodes": nodes})


def dump_tree(store: TreeStore, indent: int | None = 2) -> str:
    """Serialize a tree to a JSON string."""
    return json.dumps(serialize_tree(store), indent=indent, ensure_ascii=False) + "\n"


def load_tree_file(path: Path | str) -> TreeStore:
    """Read a ``{rootId, nodes}`` JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        TreeFormatError: If the content is not a valid tree.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TreeFormatError(f"{path}: not valid JSON ({e})") from e
    return deserialize_tree(data)


def to_outline(store: TreeStore, start: str | None = None, show_ids: bool = False) -> str:
    """Render an indented text outline of a (sub)tree.

    Containers end with "/", leaves do not.
    """
    start = store.root_id if start is None else start
    base = store.depth(start)
    lines = []
    for node_id in store.walk(start):
        node = store.get(node_id)
        indent = "  " * (store.depth(node_id) - base)
        marker = "/" if node.is_folder else ""
        suffix = f"  [{node.id}]" if show_ids else ""
        lines.append(f"{indent}{node.name}{marker} ({node.category.value}){suffix}")
    lines.append("")
    return "\n".join(lines)


__all__ = [
    "serialize_node",
    "serialize_tree",
    "deserialize_node",
    "deserialize_tree",
    "from_items",
    "dump_tree",
    "load_tree_file",
    "to_outline",
]
