"""rostertree.tools - Pure functions over an OrgTree.

This is the boundary where engine exceptions become explicit results:
every function returns a JSON-compatible dict, and failures come back as
``{"success": False, "error": <message>, "error_kind": <code>}`` instead
of propagating. The REST server and CLI are thin wrappers over these.
"""

from __future__ import annotations

from typing import Any

from rostertree.tree.engine import OrgTree
from rostertree.tree.errors import NodeNotFoundError, TreeError, error_kind
from rostertree.tree.mutations import MutationEntry
from rostertree.tree.serialize import serialize_node, serialize_tree


def _failure(e: Exception) -> dict[str, Any]:
    return {"success": False, "error": str(e), "error_kind": error_kind(e)}


def _serialize_mutation_entry(entry: MutationEntry) -> dict[str, Any]:
    """Serialize a MutationEntry for API output."""
    return entry.to_dict()


def _success(entry: MutationEntry, message: str) -> dict[str, Any]:
    return {
        "success": True,
        "mutation": _serialize_mutation_entry(entry),
        "affected_ids": list(entry.affected_ids),
        "message": message,
    }


# ─────────────────────────────────────────────────────────────────────────────
# Read-only functions
# ─────────────────────────────────────────────────────────────────────────────


def _get_tree(tree: OrgTree, include_folder_flag: bool = True) -> dict[str, Any]:
    """Serialized tree plus summary counts."""
    with tree.locked():
        result = serialize_tree(tree.store, include_folder_flag=include_folder_flag)
        result["metadata"] = {
            "node_count": tree.store.node_count(),
            "is_empty": tree.is_empty(),
            "mutation_count": len(tree.mutation_log),
        }
    return result


def _get_node(tree: OrgTree, node_id: str) -> dict[str, Any]:
    """Full details for one node, or an error dict."""
    with tree.locked():
        try:
            node = tree.get(node_id)
        except NodeNotFoundError as e:
            return {"error": str(e), "error_kind": e.kind}
        result = serialize_node(node, include_folder_flag=True)
        result["parent_id"] = tree.parent_of(node_id)
        result["depth"] = tree.store.depth(node_id)
    return result


def _search(tree: OrgTree, query: str) -> dict[str, Any]:
    """Set the active query and return the resulting search state.

    The summary is computed from ``query`` itself, so a concurrent request
    that sets a different query cannot leak into this result.
    """
    with tree.locked():
        tree.search.set_query(query)
        return tree.search.summary(query or "")


def _get_mutation_log(tree: OrgTree, limit: int = 50, since: str | None = None) -> dict[str, Any]:
    """Mutation history, oldest first.

    Args:
        limit: Maximum number of entries returned (the most recent ones).
        since: Only entries committed after this mutation id.
    """
    try:
        with tree.locked():
            entries = (
                tree.mutation_log.entries_since(since)
                if since
                else list(tree.mutation_log.iter_entries())
            )
    except ValueError as e:
        return _failure(e)
    if limit >= 0:
        entries = entries[-limit:] if limit else []
    mutations = [_serialize_mutation_entry(e) for e in entries]
    return {"success": True, "mutations": mutations, "count": len(mutations)}


def _validate(tree: OrgTree) -> dict[str, Any]:
    problems = tree.validate()
    return {"valid": not problems, "problems": problems}


# ─────────────────────────────────────────────────────────────────────────────
# Mutation functions
# ─────────────────────────────────────────────────────────────────────────────


def _mutate_rename(tree: OrgTree, node_id: str, new_name: str) -> dict[str, Any]:
    """Rename a node."""
    try:
        entry = tree.rename(node_id, new_name)
        return _success(entry, f"Renamed {node_id} to '{new_name}'")
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_edit(tree: OrgTree, node_id: str, name: str, category: str) -> dict[str, Any]:
    """Update name and category of a node."""
    try:
        entry = tree.edit(node_id, name, category)
        return _success(entry, f"Updated {node_id}")
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_insert_child(
    tree: OrgTree,
    parent_id: str,
    name: str | None = None,
    category: str | None = None,
    position: str | int | None = None,
    folder: bool = True,
) -> dict[str, Any]:
    """Insert a new node under a parent."""
    try:
        entry = tree.insert_child(parent_id, name, category, position, folder)
        result = _success(entry, f"Added {entry.after_state['id']} under {parent_id}")
        result["node_id"] = entry.after_state["id"]
        return result
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_create_group(
    tree: OrgTree, name: str | None = None, category: str | None = None
) -> dict[str, Any]:
    """Append a new top-level group."""
    try:
        entry = tree.create_group(name, category)
        result = _success(entry, f"Created group {entry.after_state['id']}")
        result["node_id"] = entry.after_state["id"]
        return result
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_delete_subtree(tree: OrgTree, node_id: str, confirm: bool = False) -> dict[str, Any]:
    """Delete a node and its descendants.

    Requires confirm=True, since the whole subtree goes.
    """
    if not confirm:
        return {
            "success": False,
            "error": "Destructive operation requires confirm=True",
            "error_kind": "confirm_required",
        }
    try:
        entry = tree.delete_subtree(node_id)
        removed = entry.after_state["removed_ids"]
        return _success(entry, f"Deleted {node_id} ({len(removed)} nodes)")
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_duplicate_subtree(tree: OrgTree, node_id: str) -> dict[str, Any]:
    """Duplicate a subtree next to the original."""
    try:
        entry = tree.duplicate_subtree(node_id)
        result = _success(entry, f"Duplicated {node_id} as {entry.after_state['id']}")
        result["node_id"] = entry.after_state["id"]
        return result
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_reparent(
    tree: OrgTree, node_id: str, new_parent_id: str, position: str | int | None = "back"
) -> dict[str, Any]:
    """Move a node under a new parent."""
    try:
        entry = tree.reparent(node_id, new_parent_id, position)
        return _success(entry, f"Moved {node_id} under {new_parent_id}")
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_set_capability(tree: OrgTree, node_id: str, flag: str, value: bool) -> dict[str, Any]:
    """Set a capability flag."""
    try:
        entry = tree.set_capability(node_id, flag, value)
        return _success(entry, f"Set {flag}={bool(value)} on {node_id}")
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


def _mutate_convert_to_folder(tree: OrgTree, node_id: str) -> dict[str, Any]:
    """Turn a leaf into an empty container."""
    try:
        entry = tree.convert_to_folder(node_id)
        if not entry.affected_ids:
            return _success(entry, f"{node_id} is already a folder")
        return _success(entry, f"Converted {node_id} to a folder")
    except (TreeError, ValueError, KeyError) as e:
        return _failure(e)


__all__ = [
    "_get_tree",
    "_get_node",
    "_search",
    "_get_mutation_log",
    "_validate",
    "_mutate_rename",
    "_mutate_edit",
    "_mutate_insert_child",
    "_mutate_create_group",
    "_mutate_delete_subtree",
    "_mutate_duplicate_subtree",
    "_mutate_reparent",
    "_mutate_set_capability",
    "_mutate_convert_to_folder",
]
