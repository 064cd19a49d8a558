"""Error kinds raised by the tree store and mutation engine.

Every error carries a stable ``kind`` code that the tool layer reports
back to callers next to the message.
"""

from __future__ import annotations


class TreeError(Exception):
    """Base class for all tree errors."""

    kind = "error"

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.node_id = node_id

    def __str__(self) -> str:
        return self.message


class NodeNotFoundError(TreeError, KeyError):
    """A referenced id is absent from the store."""

    kind = "not_found"

    def __init__(self, node_id: str, role: str = "Node") -> None:
        super().__init__(f"{role} '{node_id}' not found", node_id)


class RootDeletionError(TreeError, ValueError):
    """Attempt to delete, duplicate or otherwise remove the root."""

    kind = "root_deletion"


class CyclicMoveError(TreeError, ValueError):
    """Reparent target is the moved node or one of its descendants."""

    kind = "cyclic_move"


class NotMovableError(TreeError, ValueError):
    """The node's ``movable`` flag forbids the operation."""

    kind = "not_movable"


class NotRenamableError(TreeError, ValueError):
    """The node's ``renamable`` flag forbids the operation."""

    kind = "not_renamable"


class DuplicateIdError(TreeError, RuntimeError):
    """An id is already present in the store."""

    kind = "duplicate_id"


class TreeInvariantError(TreeError, RuntimeError):
    """The store failed its structural invariant check."""

    kind = "invariant"

    def __init__(self, problems: list[str]) -> None:
        super().__init__("Tree invariants violated: " + "; ".join(problems))
        self.problems = problems


class TreeFormatError(TreeError, ValueError):
    """Serialized tree data is malformed."""

    kind = "format"


def error_kind(exc: BaseException) -> str:
    """Return the kind code for any exception the engine may raise."""
    if isinstance(exc, TreeError):
        return exc.kind
    if isinstance(exc, KeyError):
        return NodeNotFoundError.kind
    return "invalid"


__all__ = [
    "TreeError",
    "NodeNotFoundError",
    "RootDeletionError",
    "CyclicMoveError",
    "NotMovableError",
    "NotRenamableError",
    "DuplicateIdError",
    "TreeInvariantError",
    "TreeFormatError",
    "error_kind",
]
