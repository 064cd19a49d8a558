"""OrgTree - Mutation engine for the organizational tree.

Every public mutation validates existence, capability flags and cycles
before its first write, so a failure leaves the store untouched. A
successful call returns the MutationEntry it committed; the same entry
is appended to the mutation log and published to change subscribers.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Any, Iterator

from rostertree.tree.errors import (
    CyclicMoveError,
    DuplicateIdError,
    NodeNotFoundError,
    NotMovableError,
    NotRenamableError,
    RootDeletionError,
)
from rostertree.tree.ids import IdGenerator
from rostertree.tree.mutations import MutationEntry, MutationLog
from rostertree.tree.notifier import ChangeNotifier
from rostertree.tree.search import SearchIndex
from rostertree.tree.store import TreeStore
from rostertree.tree.TreeNode import NodeCategory, TreeNode

logger = logging.getLogger(__name__)

CAPABILITY_FLAGS = ("movable", "renamable")
POSITIONS = ("front", "back")


def resolve_position(position: str | int | None, length: int, default: str = "back") -> int:
    """Turn a position spec into a concrete insertion index.

    Args:
        position: "front", "back", an integer index, or None for ``default``.
        length: Current number of children at the destination.
        default: Position used when ``position`` is None.

    Returns:
        Index in ``[0, length]``; integers are clamped.

    Raises:
        ValueError: For any other value.
    """
    if position is None:
        position = default
    if isinstance(position, bool):
        raise ValueError(f"Invalid position: {position!r}")
    if isinstance(position, int):
        return max(0, min(position, length))
    if position == "front":
        return 0
    if position == "back":
        return length
    raise ValueError(f"Invalid position: {position!r}. Use 'front', 'back' or an index")


class OrgTree:
    """Mutation engine over a TreeStore.

    Args:
        store: The store this engine owns.
        id_generator: Source of fresh node ids (random by default).
        copy_suffix: Marker appended to the name of a duplicated subtree root.
        new_node_name: Name given to inserted nodes when none is passed.
        new_node_category: Category given to inserted nodes when none is passed.
        default_position: Where insert_child puts new nodes by default.
        threadsafe: Serialize mutations and engine reads behind one
            re-entrant lock.
        check_invariants: Run a full invariant check after every commit.
        memoize_search: Cache ancestor match results in the search index.
    """

    def __init__(
        self,
        store: TreeStore,
        id_generator: IdGenerator | None = None,
        copy_suffix: str = " (Copy)",
        new_node_name: str = "New Group",
        new_node_category: NodeCategory | str = NodeCategory.DIVISION,
        default_position: str = "front",
        threadsafe: bool = False,
        check_invariants: bool = False,
        memoize_search: bool = True,
    ) -> None:
        if default_position not in POSITIONS:
            raise ValueError(f"Invalid default position: {default_position!r}")
        self.store = store
        self.ids = id_generator or IdGenerator()
        if self.ids.exists is None:
            self.ids.exists = store.__contains__
        self.copy_suffix = copy_suffix
        self.new_node_name = new_node_name
        self.new_node_category = NodeCategory.parse(new_node_category)
        self.default_position = default_position
        self.check_invariants = check_invariants
        self.mutation_log = MutationLog()
        self.notifier = ChangeNotifier()
        self.search = SearchIndex(store, memoize=memoize_search)
        self._lock: Any = threading.RLock() if threadsafe else contextlib.nullcontext()

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> OrgTree:
        """Build an engine over a deserialized ``{rootId, nodes}`` tree."""
        from rostertree.tree.serialize import deserialize_tree

        return cls(deserialize_tree(data), **kwargs)

    @classmethod
    def from_config(cls, store: TreeStore, config: Any, **kwargs: Any) -> OrgTree:
        """Build an engine using ``[tree]`` and ``[search]`` config settings.

        Args:
            store: The store to own.
            config: A ConfigLoader (anything with a dotted-key ``get``).
            **kwargs: Overrides for the remaining constructor arguments.
        """
        options: dict[str, Any] = {
            "id_generator": IdGenerator(prefix=config.get("tree.id_prefix", "node")),
            "copy_suffix": config.get("tree.copy_suffix", " (Copy)"),
            "new_node_name": config.get("tree.new_node_name", "New Group"),
            "new_node_category": config.get("tree.new_node_category", "Division"),
            "default_position": config.get("tree.default_position", "front"),
            "memoize_search": bool(config.get("search.memoize", True)),
        }
        options.update(kwargs)
        return cls(store, **options)

    # ─────────────────────────────────────────────────────────────────────────
    # Read-only surface
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def root_id(self) -> str:
        return self.store.root_id

    def get(self, node_id: str) -> TreeNode:
        """Get a copy of a node by id (raises NodeNotFoundError).

        The store keeps its own nodes; edits to the returned copy do not
        reach the tree.
        """
        with self._lock:
            return self.store.get(node_id).copy()

    def children_of(self, node_id: str) -> list[str]:
        """Ordered child ids of a node."""
        with self._lock:
            return self.store.children_of(node_id)

    def parent_of(self, node_id: str) -> str | None:
        """Parent id of a node, None for the root."""
        with self._lock:
            return self.store.parent_of(node_id)

    def is_empty(self) -> bool:
        """True if the root has no children."""
        with self._lock:
            return self.store.root.child_count() == 0

    def validate(self) -> list[str]:
        """Invariant violations of the current tree (empty when consistent)."""
        with self._lock:
            return self.store.validate()

    def subscribe(self, callback):
        """Shortcut for ``notifier.subscribe``."""
        return self.notifier.subscribe(callback)

    @contextlib.contextmanager
    def locked(self) -> Iterator[OrgTree]:
        """Hold the mutation lock for a multi-step read.

        A no-op unless the engine was built with ``threadsafe=True``.
        """
        with self._lock:
            yield self

    # ─────────────────────────────────────────────────────────────────────────
    # Node field mutations
    # ─────────────────────────────────────────────────────────────────────────

    def rename(self, node_id: str, new_name: str) -> MutationEntry:
        """Set a node's display name.

        Raises:
            NodeNotFoundError: If node_id is not found.
            NotRenamableError: If the node is not renamable.
        """
        with self._lock:
            node = self.store.get(node_id)
            self._require_renamable(node)

            entry = MutationEntry(
                operation="rename",
                target_id=node_id,
                before_state={"name": node.name},
                after_state={"name": new_name},
                affected_ids=[node_id],
            )
            self.store.replace(node_id, node.copy(name=new_name))
            return self._commit(entry)

    def edit(self, node_id: str, name: str, category: NodeCategory | str) -> MutationEntry:
        """Set name and category together.

        Raises:
            NodeNotFoundError: If node_id is not found.
            NotRenamableError: If the node is not renamable.
            ValueError: If the category is unknown.
        """
        with self._lock:
            node = self.store.get(node_id)
            self._require_renamable(node)
            new_category = NodeCategory.parse(category)

            entry = MutationEntry(
                operation="edit",
                target_id=node_id,
                before_state={"name": node.name, "category": node.category.value},
                after_state={"name": name, "category": new_category.value},
                affected_ids=[node_id],
            )
            self.store.replace(node_id, node.copy(name=name, category=new_category))
            return self._commit(entry)

    def set_capability(self, node_id: str, flag: str, value: bool) -> MutationEntry:
        """Set the ``movable`` or ``renamable`` flag of a node.

        Raises:
            NodeNotFoundError: If node_id is not found.
            ValueError: If flag is not a capability flag or value is not a bool.
        """
        if flag not in CAPABILITY_FLAGS:
            raise ValueError(f"Unknown capability '{flag}'. Must be one of: {CAPABILITY_FLAGS}")
        if not isinstance(value, bool):
            raise ValueError(f"Capability value must be true or false, got {value!r}")
        with self._lock:
            node = self.store.get(node_id)

            entry = MutationEntry(
                operation="set_capability",
                target_id=node_id,
                before_state={flag: getattr(node, flag)},
                after_state={flag: value},
                affected_ids=[node_id],
            )
            self.store.replace(node_id, node.copy(**{flag: value}))
            return self._commit(entry)

    def convert_to_folder(self, node_id: str) -> MutationEntry:
        """Turn a leaf into an empty container.

        Already-container nodes are left alone: the returned entry has no
        affected ids and is neither logged nor published.

        Raises:
            NodeNotFoundError: If node_id is not found.
        """
        with self._lock:
            node = self.store.get(node_id)
            entry = MutationEntry(
                operation="convert_to_folder",
                target_id=node_id,
                before_state={"is_folder": node.is_folder},
                after_state={"is_folder": True},
            )
            if node.is_folder:
                return entry
            entry.affected_ids = [node_id]
            self.store.replace(node_id, node.copy(children=[]))
            return self._commit(entry)

    # ─────────────────────────────────────────────────────────────────────────
    # Structural mutations
    # ─────────────────────────────────────────────────────────────────────────

    def insert_child(
        self,
        parent_id: str,
        name: str | None = None,
        category: NodeCategory | str | None = None,
        position: str | int | None = None,
        folder: bool = True,
    ) -> MutationEntry:
        """Create a new node under ``parent_id``.

        A leaf parent becomes a container first. The new node is a
        container with no children when ``folder`` is True, a leaf otherwise.

        Args:
            parent_id: Where to insert.
            name: Display name (defaults to ``new_node_name``).
            category: Category (defaults to ``new_node_category``).
            position: "front", "back" or an index (defaults to
                ``default_position``).
            folder: Create a container instead of a leaf.

        Returns:
            MutationEntry whose ``after_state["id"]`` is the new id.

        Raises:
            NodeNotFoundError: If parent_id is not found.
            NotMovableError: If the parent is not movable.
            ValueError: If position, category or folder is invalid.
        """
        return self._insert("insert_child", parent_id, name, category, position, folder)

    def create_group(
        self,
        name: str | None = None,
        category: NodeCategory | str | None = None,
    ) -> MutationEntry:
        """Append a new top-level container under the root."""
        return self._insert("create_group", self.store.root_id, name, category, "back", True)

    def _insert(
        self,
        operation: str,
        parent_id: str,
        name: str | None,
        category: NodeCategory | str | None,
        position: str | int | None,
        folder: bool,
    ) -> MutationEntry:
        if not isinstance(folder, bool):
            raise ValueError(f"folder must be true or false, got {folder!r}")
        with self._lock:
            parent = self._get(parent_id, "Parent")
            if not parent.movable:
                raise NotMovableError(
                    f"Node '{parent_id}' does not accept new children", parent_id
                )
            index = resolve_position(position, parent.child_count(), self.default_position)
            new_category = NodeCategory.parse(
                category if category is not None else self.new_node_category
            )
            new_name = name if name is not None else self.new_node_name
            new_id = self.ids.next_id()
            converted = parent.is_leaf

            entry = MutationEntry(
                operation=operation,
                target_id=parent_id,
                before_state={"children": self._children_snapshot(parent)},
                after_state={
                    "id": new_id,
                    "name": new_name,
                    "category": new_category.value,
                    "position": index,
                    "converted": converted,
                },
                affected_ids=[parent_id, new_id],
            )
            self.store.insert(
                TreeNode(
                    id=new_id,
                    name=new_name,
                    category=new_category,
                    children=[] if folder else None,
                )
            )
            self.store.attach(parent_id, new_id, index)
            return self._commit(entry)

    def delete_subtree(self, node_id: str) -> MutationEntry:
        """Remove a node and every descendant.

        Raises:
            NodeNotFoundError: If node_id is not found.
            RootDeletionError: If node_id is the root.
            NotMovableError: If the node is not movable.
        """
        with self._lock:
            node = self.store.get(node_id)
            if node_id == self.store.root_id:
                raise RootDeletionError("Cannot delete the root node", node_id)
            self._require_movable(node, "deleted")

            doomed = list(self.store.walk(node_id))
            parent_id = self.store.parent_of(node_id)

            entry = MutationEntry(
                operation="delete_subtree",
                target_id=node_id,
                before_state={
                    "name": node.name,
                    "parent_id": parent_id,
                    "position": self.store.children_of(parent_id).index(node_id),
                },
                after_state={"removed_ids": doomed},
                affected_ids=[parent_id, *doomed],
            )
            self.store.detach(node_id)
            for removed_id in reversed(doomed):
                self.store.remove(removed_id)
            return self._commit(entry)

    def duplicate_subtree(self, node_id: str) -> MutationEntry:
        """Deep-copy a subtree and insert it right after the original.

        Every copied node gets a fresh id. Only the copy's root name gets
        the copy suffix; shape, categories, child order and capability
        flags are preserved. The root cannot be duplicated.

        Returns:
            MutationEntry whose ``after_state["id"]`` is the copy's root id
            and ``after_state["id_map"]`` maps original to copied ids.

        Raises:
            NodeNotFoundError: If node_id is not found.
            RootDeletionError: If node_id is the root.
        """
        with self._lock:
            self.store.get(node_id)
            if node_id == self.store.root_id:
                raise RootDeletionError("Cannot duplicate the root node", node_id)

            parent_id = self.store.parent_of(node_id)
            position = self.store.children_of(parent_id).index(node_id) + 1
            originals = list(self.store.walk(node_id))
            id_map = self._allocate_ids(originals)
            clone_root = id_map[node_id]

            clones = []
            for original_id in originals:
                source = self.store.get(original_id)
                children = (
                    [id_map[c] for c in source.children] if source.children is not None else None
                )
                name = source.name + self.copy_suffix if original_id == node_id else source.name
                clones.append(source.copy(id=id_map[original_id], name=name, children=children))

            entry = MutationEntry(
                operation="duplicate_subtree",
                target_id=node_id,
                before_state={"parent_id": parent_id},
                after_state={"id": clone_root, "position": position, "id_map": id_map},
                affected_ids=[parent_id, *(id_map[o] for o in originals)],
            )
            for clone in clones:
                self.store.insert(clone)
            self.store.attach(parent_id, clone_root, position)
            return self._commit(entry)

    def reparent(
        self,
        node_id: str,
        new_parent_id: str,
        position: str | int | None = "back",
    ) -> MutationEntry:
        """Move a node (with its subtree) under a different parent.

        Moving within the same parent repositions the node; an integer
        position is an index into the children list after the node has
        been taken out. A leaf target becomes a container.

        Raises:
            NodeNotFoundError: If either id is not found.
            CyclicMoveError: If new_parent_id is node_id or one of its
                descendants.
            NotMovableError: If the node is not movable, or the target does
                not accept children.
            ValueError: If position is invalid.
        """
        with self._lock:
            node = self.store.get(node_id)
            target = self._get(new_parent_id, "Target")
            if new_parent_id == node_id or self.store.is_ancestor(node_id, new_parent_id):
                raise CyclicMoveError(
                    f"Cannot move '{node_id}' into itself or its own descendant '{new_parent_id}'",
                    node_id,
                )
            self._require_movable(node, "moved")
            if not target.movable:
                raise NotMovableError(
                    f"Node '{new_parent_id}' does not accept new children", new_parent_id
                )

            length = target.child_count() - (1 if target.has_child(node_id) else 0)
            index = resolve_position(position, length)
            old_parent_id = self.store.parent_of(node_id)
            old_position = self.store.children_of(old_parent_id).index(node_id)
            converted = target.is_leaf

            affected: list[str] = []
            for changed in (old_parent_id, new_parent_id, node_id):
                if changed not in affected:
                    affected.append(changed)

            entry = MutationEntry(
                operation="reparent",
                target_id=node_id,
                before_state={"parent_id": old_parent_id, "position": old_position},
                after_state={
                    "parent_id": new_parent_id,
                    "position": index,
                    "converted": converted,
                },
                affected_ids=affected,
            )
            self.store.detach(node_id)
            self.store.attach(new_parent_id, node_id, index)
            return self._commit(entry)

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _get(self, node_id: str, role: str) -> TreeNode:
        node = self.store.find_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(node_id, role)
        return node

    @staticmethod
    def _require_renamable(node: TreeNode) -> None:
        if not node.renamable:
            raise NotRenamableError(f"Node '{node.id}' cannot be renamed", node.id)

    @staticmethod
    def _require_movable(node: TreeNode, action: str) -> None:
        if not node.movable:
            raise NotMovableError(f"Node '{node.id}' cannot be {action}", node.id)

    @staticmethod
    def _children_snapshot(node: TreeNode) -> list[str] | None:
        return list(node.children) if node.children is not None else None

    def _allocate_ids(self, originals: list[str]) -> dict[str, str]:
        """Allocate one fresh id per original, unique within the batch too."""
        id_map: dict[str, str] = {}
        taken: set[str] = set()
        for original_id in originals:
            for _ in range(self.ids.max_attempts):
                candidate = self.ids.next_id()
                if candidate not in taken:
                    break
            else:
                raise DuplicateIdError(f"Could not allocate a unique id for copy of '{original_id}'")
            taken.add(candidate)
            id_map[original_id] = candidate
        return id_map

    def _commit(self, entry: MutationEntry) -> MutationEntry:
        if self.check_invariants:
            self.store.check()
        self.mutation_log.append(entry)
        logger.debug("%s affected %s", entry, entry.affected_ids)
        self.notifier.publish(entry)
        return entry


__all__ = ["OrgTree", "resolve_position", "CAPABILITY_FLAGS"]
