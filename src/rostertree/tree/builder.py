"""Tree Builder - Constructs a TreeStore from parent-linked records.

This module provides the builder pattern for assembling a tree when the
children lists are not known up front, e.g. from fixtures or flat rows
that only name their parent.
"""

from __future__ import annotations

from dataclasses import dataclass

from rostertree.tree.errors import DuplicateIdError, NodeNotFoundError, TreeInvariantError
from rostertree.tree.store import TreeStore
from rostertree.tree.TreeNode import NodeCategory, TreeNode


@dataclass
class _PendingNode:
    node: TreeNode
    parent_id: str | None


class TreeBuilder:
    """Builder for a TreeStore.

    Usage:
        builder = TreeBuilder("root", "League Structure", "Conference")
        builder.add("monday", "Monday", "Conference")
        builder.add("8u", "8U", "Division", parent_id="monday")
        store = builder.build()

    Nodes are attached in the order they were added. Parents may be added
    after their children.
    """

    def __init__(
        self,
        root_id: str = "root",
        root_name: str = "Root",
        root_category: NodeCategory | str = NodeCategory.CONFERENCE,
    ) -> None:
        self.root_id = root_id
        self._pending: dict[str, _PendingNode] = {
            root_id: _PendingNode(
                TreeNode(root_id, root_name, NodeCategory.parse(root_category), children=[]),
                None,
            )
        }

    def add(
        self,
        node_id: str,
        name: str,
        category: NodeCategory | str = NodeCategory.DIVISION,
        parent_id: str | None = None,
        folder: bool = True,
        movable: bool = True,
        renamable: bool = True,
    ) -> TreeBuilder:
        """Register a node under ``parent_id`` (the root when None).

        Raises:
            DuplicateIdError: If node_id was already added.
        """
        if node_id in self._pending:
            raise DuplicateIdError(f"Node '{node_id}' already exists", node_id)
        node = TreeNode(
            id=node_id,
            name=name,
            category=NodeCategory.parse(category),
            children=[] if folder else None,
            movable=movable,
            renamable=renamable,
        )
        self._pending[node_id] = _PendingNode(node, parent_id or self.root_id)
        return self

    def build(self) -> TreeStore:
        """Link every node to its parent and return the validated store.

        A leaf that receives children becomes a container.

        Raises:
            NodeNotFoundError: If a parent id was never added.
            TreeInvariantError: If the links form a cycle.
        """
        nodes = {node_id: p.node.copy() for node_id, p in self._pending.items()}
        for node_id, pending in self._pending.items():
            if pending.parent_id is None:
                continue
            parent = nodes.get(pending.parent_id)
            if parent is None:
                raise NodeNotFoundError(pending.parent_id, "Parent")
            if parent.children is None:
                parent.children = []
            parent.children.append(node_id)

        store = TreeStore(nodes[self.root_id])
        for node_id, node in nodes.items():
            if node_id != self.root_id:
                store.insert(node)
        problems = store.validate()
        if problems:
            raise TreeInvariantError(problems)
        return store


__all__ = ["TreeBuilder"]
