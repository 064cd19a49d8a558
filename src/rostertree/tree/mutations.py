"""Mutation records for OrgTree operations.

This module provides dataclasses for recording committed mutations
and the ids each one affected.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4


@dataclass
class MutationEntry:
    """Single committed mutation.

    Attributes:
        operation: Operation name (e.g., "rename", "reparent").
        target_id: Primary target of the mutation.
        before_state: Relevant state before the mutation.
        after_state: Relevant state after the mutation.
        affected_ids: Ids whose state changed (created, deleted, or whose
            children or name changed), in a stable order.
        id: Unique mutation id (UUID4 hex).
        timestamp: When the mutation was committed.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    affected_ids: list[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form."""
        return {
            "id": self.id,
            "operation": self.operation,
            "target_id": self.target_id,
            "before": self.before_state,
            "after": self.after_state,
            "affected_ids": list(self.affected_ids),
            "timestamp": self.timestamp.isoformat(),
        }


class MutationLog:
    """Append-only history of committed mutations.

    Example:
        >>> log = MutationLog()
        >>> log.append(MutationEntry("rename", "a", {"name": "A"}, {"name": "B"}))
        >>> len(log)
        1
    """

    def __init__(self) -> None:
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        """Append a mutation entry to the log."""
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None

    def find_by_id(self, mutation_id: str) -> MutationEntry | None:
        """Find an entry by its mutation id."""
        for entry in self._entries:
            if entry.id == mutation_id:
                return entry
        return None

    def entries_since(self, mutation_id: str) -> list[MutationEntry]:
        """Entries committed after a specific mutation (exclusive).

        Lets an observer that missed notifications catch up from the last
        entry it saw.

        Raises:
            ValueError: If the mutation_id is not found.
        """
        for i, entry in enumerate(self._entries):
            if entry.id == mutation_id:
                return list(self._entries[i + 1 :])
        raise ValueError(f"Mutation {mutation_id} not found in log")


__all__ = ["MutationEntry", "MutationLog"]
