"""Tree Store - Owner of the id -> node map.

The store holds every node of one tree plus the designated root id and a
derived child -> parent index. Raw write operations keep that index in
step with the ``children`` lists, but they do not enforce the structural
invariants on their own: the mutation engine validates before writing
and calls them in an order that leaves the tree consistent.
"""

from __future__ import annotations

from collections import Counter, deque
from typing import Iterator

from rostertree.tree.errors import (
    DuplicateIdError,
    NodeNotFoundError,
    TreeInvariantError,
)
from rostertree.tree.TreeNode import TreeNode


class TreeStore:
    """Indexed storage for a single rooted tree.

    Attributes:
        root_id: Id of the designated root node.
        version: Counter bumped on every write, for cache invalidation.
    """

    def __init__(self, root: TreeNode) -> None:
        self.root_id = root.id
        self.version = 0
        self._index: dict[str, TreeNode] = {}
        self._parents: dict[str, str] = {}
        self.insert(root)

    # ─────────────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────────────

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self._index)

    def node_count(self) -> int:
        """Return total number of nodes."""
        return len(self._index)

    @property
    def root(self) -> TreeNode:
        """The root node."""
        return self._index[self.root_id]

    def get(self, node_id: str) -> TreeNode:
        """Get a node by id.

        Raises:
            NodeNotFoundError: If the id is absent.
        """
        try:
            return self._index[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def find_by_id(self, node_id: str) -> TreeNode | None:
        """Find node by id, or None."""
        return self._index.get(node_id)

    def all_nodes(self) -> Iterator[TreeNode]:
        """Iterate all nodes in insertion order."""
        yield from self._index.values()

    def children_of(self, node_id: str) -> list[str]:
        """Return a copy of the ordered child ids (empty for a leaf)."""
        return list(self.get(node_id).children or [])

    def parent_of(self, node_id: str) -> str | None:
        """Return the parent id, or None for the root.

        Raises:
            NodeNotFoundError: If the id is absent.
        """
        if node_id not in self._index:
            raise NodeNotFoundError(node_id)
        return self._parents.get(node_id)

    def ancestors(self, node_id: str) -> Iterator[str]:
        """Iterate ancestor ids from the parent up to the root."""
        seen: set[str] = {node_id}
        current = self.parent_of(node_id)
        while current is not None and current not in seen:
            seen.add(current)
            yield current
            current = self._parents.get(current)

    def is_ancestor(self, ancestor_id: str, node_id: str) -> bool:
        """True if ``ancestor_id`` is a proper ancestor of ``node_id``."""
        return any(a == ancestor_id for a in self.ancestors(node_id))

    def depth(self, node_id: str) -> int:
        """Number of edges between the node and the root."""
        return sum(1 for _ in self.ancestors(node_id))

    # ─────────────────────────────────────────────────────────────────────────
    # Traversal
    # ─────────────────────────────────────────────────────────────────────────

    def walk(self, start: str | None = None, order: str = "pre") -> Iterator[str]:
        """Iterate ids of a subtree.

        Args:
            start: Subtree root (defaults to the tree root).
            order: "pre" (parent first), "post" (children first) or
                "level" (breadth-first).

        Yields:
            Node ids. Each id is visited at most once.
        """
        start = self.root_id if start is None else start
        self.get(start)
        if order == "pre":
            yield from self._walk_preorder(start)
        elif order == "post":
            yield from self._walk_postorder(start)
        elif order == "level":
            yield from self._walk_level(start)
        else:
            raise ValueError(f"Unknown traversal order: {order}")

    def _walk_preorder(self, start: str) -> Iterator[str]:
        visited: set[str] = set()
        stack = [start]
        while stack:
            node_id = stack.pop()
            if node_id in visited or node_id not in self._index:
                continue
            visited.add(node_id)
            yield node_id
            stack.extend(reversed(self._index[node_id].children or []))

    def _walk_postorder(self, start: str) -> Iterator[str]:
        visited: set[str] = {start}
        stack: list[tuple[str, bool]] = [(start, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                yield node_id
                continue
            stack.append((node_id, True))
            for child_id in reversed(self._index[node_id].children or []):
                if child_id in self._index and child_id not in visited:
                    visited.add(child_id)
                    stack.append((child_id, False))

    def _walk_level(self, start: str) -> Iterator[str]:
        visited: set[str] = {start}
        queue: deque[str] = deque([start])
        while queue:
            node_id = queue.popleft()
            yield node_id
            for child_id in self._index[node_id].children or []:
                if child_id in self._index and child_id not in visited:
                    visited.add(child_id)
                    queue.append(child_id)

    def descendants(self, node_id: str) -> list[str]:
        """Proper descendants of a node, pre-order."""
        return list(self.walk(node_id))[1:]

    # ─────────────────────────────────────────────────────────────────────────
    # Raw writes
    # ─────────────────────────────────────────────────────────────────────────

    def insert(self, node: TreeNode) -> None:
        """Add a node to the map and index its children.

        Raises:
            DuplicateIdError: If the id is already present.
        """
        if node.id in self._index:
            raise DuplicateIdError(f"Node '{node.id}' already exists", node.id)
        self._index[node.id] = node
        self._register_children(node)
        self.version += 1

    def replace(self, node_id: str, node: TreeNode) -> None:
        """Swap the stored node for an updated one with the same id."""
        old = self.get(node_id)
        if node.id != node_id:
            raise ValueError(f"Cannot replace '{node_id}' with a node named '{node.id}'")
        self._unregister_children(old)
        self._index[node_id] = node
        self._register_children(node)
        self.version += 1

    def remove(self, node_id: str) -> TreeNode:
        """Drop a node from the map.

        The caller detaches the node from its parent first; child index
        entries pointing at this node are dropped with it.
        """
        node = self.get(node_id)
        self._unregister_children(node)
        del self._index[node_id]
        self._parents.pop(node_id, None)
        self.version += 1
        return node

    def attach(self, parent_id: str, child_id: str, index: int | None = None) -> None:
        """Insert ``child_id`` into the parent's children at ``index``.

        A leaf parent gets an empty children list first. ``None`` appends.
        """
        parent = self.get(parent_id)
        if parent.children is None:
            parent.children = []
        if index is None:
            parent.children.append(child_id)
        else:
            parent.children.insert(index, child_id)
        self._parents[child_id] = parent_id
        self.version += 1

    def detach(self, child_id: str) -> tuple[str, int] | None:
        """Remove a node from its parent's children.

        Returns:
            (parent_id, former index), or None if the node had no parent.
        """
        parent_id = self._parents.pop(child_id, None)
        if parent_id is None:
            return None
        siblings = self._index[parent_id].children or []
        position = siblings.index(child_id)
        del siblings[position]
        self.version += 1
        return parent_id, position

    def _register_children(self, node: TreeNode) -> None:
        for child_id in node.children or []:
            self._parents[child_id] = node.id

    def _unregister_children(self, node: TreeNode) -> None:
        for child_id in node.children or []:
            if self._parents.get(child_id) == node.id:
                del self._parents[child_id]

    # ─────────────────────────────────────────────────────────────────────────
    # Invariants
    # ─────────────────────────────────────────────────────────────────────────

    def validate(self) -> list[str]:
        """Check structural invariants.

        Returns:
            Human-readable descriptions of every violation; empty when the
            tree is consistent.
        """
        problems: list[str] = []
        if self.root_id not in self._index:
            return [f"root '{self.root_id}' missing from store"]

        owners: Counter[str] = Counter()
        for node in self._index.values():
            for child_id in node.children or []:
                owners[child_id] += 1
                if child_id not in self._index:
                    problems.append(f"'{node.id}' references missing child '{child_id}'")
                elif self._parents.get(child_id) != node.id:
                    problems.append(f"parent index for '{child_id}' is stale")

        if owners[self.root_id]:
            problems.append(f"root '{self.root_id}' is listed as a child")
        for node_id in self._index:
            if node_id == self.root_id:
                continue
            count = owners[node_id]
            if count == 0:
                problems.append(f"'{node_id}' has no parent")
            elif count > 1:
                problems.append(f"'{node_id}' is listed under {count} parents")

        reachable = set(self.walk())
        for node_id in self._index:
            if node_id not in reachable and owners[node_id]:
                problems.append(f"'{node_id}' is not reachable from the root (cycle)")
        return problems

    def check(self) -> None:
        """Raise TreeInvariantError if ``validate()`` reports anything."""
        problems = self.validate()
        if problems:
            raise TreeInvariantError(problems)


__all__ = ["TreeStore"]
