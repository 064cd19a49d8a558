"""Tree module - Core tree data structures and engine.

Exports:
- NodeCategory: Enum of node categories
- TreeNode: Node representation (container iff it has a children list)
- TreeStore: id -> node map with a derived parent index
- MutationEntry / MutationLog: Records of committed mutations
- ChangeNotifier: Delivery of committed mutations to observers
- Error classes from rostertree.tree.errors

Note: OrgTree (the mutation engine) is in rostertree.tree.engine and
SearchIndex in rostertree.tree.search.
"""

from rostertree.tree.errors import (
    CyclicMoveError,
    DuplicateIdError,
    NodeNotFoundError,
    NotMovableError,
    NotRenamableError,
    RootDeletionError,
    TreeError,
    TreeFormatError,
    TreeInvariantError,
)
from rostertree.tree.mutations import MutationEntry, MutationLog
from rostertree.tree.notifier import ChangeNotifier
from rostertree.tree.store import TreeStore
from rostertree.tree.TreeNode import NodeCategory, TreeNode

__all__ = [
    "NodeCategory",
    "TreeNode",
    "TreeStore",
    "MutationEntry",
    "MutationLog",
    "ChangeNotifier",
    "TreeError",
    "NodeNotFoundError",
    "RootDeletionError",
    "CyclicMoveError",
    "NotMovableError",
    "NotRenamableError",
    "DuplicateIdError",
    "TreeInvariantError",
    "TreeFormatError",
]
