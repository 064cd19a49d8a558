"""TreeNode - Node representation for the organizational tree.

This module provides the core data structures:
- NodeCategory: Closed set of descriptive node tags
- TreeNode: A named, typed node with optional ordered children
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class NodeCategory(Enum):
    """Descriptive tag for a node. Carries no structural behavior."""

    CONFERENCE = "Conference"
    DIVISION = "Division"
    TEAM = "Team"

    @classmethod
    def parse(cls, value: NodeCategory | str) -> NodeCategory:
        """Resolve a category from an enum member, value or member name.

        Args:
            value: "Team", "TEAM", "team" or NodeCategory.TEAM.

        Returns:
            The matching NodeCategory.

        Raises:
            ValueError: If the value names no category.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() in (member.value.lower(), member.name.lower()):
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown category '{value}'. Must be one of: {choices}")


@dataclass
class TreeNode:
    """A node in the organizational tree.

    Whether a node is a container is decided only by ``children``:
    ``None`` means leaf, a list (even an empty one) means container.

    Attributes:
        id: Unique identifier, immutable once assigned.
        name: Display name.
        category: Descriptive tag.
        children: Ordered child ids, or None for a leaf.
        movable: Whether the node may be moved, deleted or receive children.
        renamable: Whether the node may be renamed.
    """

    id: str
    name: str
    category: NodeCategory = NodeCategory.DIVISION
    children: list[str] | None = field(default=None)
    movable: bool = True
    renamable: bool = True

    @property
    def is_folder(self) -> bool:
        """True if this node is a container."""
        return self.children is not None

    @property
    def is_leaf(self) -> bool:
        """True if this node has no children list at all."""
        return self.children is None

    def child_count(self) -> int:
        """Return number of children (0 for leaves)."""
        return len(self.children) if self.children is not None else 0

    def has_child(self, child_id: str) -> bool:
        """Check if an id is a direct child."""
        return self.children is not None and child_id in self.children

    def copy(self, **changes) -> TreeNode:
        """Return an independent copy, with its own children list."""
        children = list(self.children) if self.children is not None else None
        return replace(self, children=changes.pop("children", children), **changes)
