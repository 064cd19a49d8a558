"""Identifier generation for new tree nodes."""

from __future__ import annotations

import itertools
import re
from typing import Callable
from uuid import uuid4

from rostertree.tree.errors import DuplicateIdError

_SLUG_RE = re.compile(r"[^0-9A-Za-z_-]+")


def _slug(text: str) -> str:
    return _SLUG_RE.sub("-", text.strip().lower()).strip("-")


class IdGenerator:
    """Random ids of the form ``<prefix>-<12 hex chars>``.

    A collision check callback lets the generator re-roll when the store
    already holds the candidate.

    Args:
        prefix: Default id prefix.
        exists: Callback returning True if an id is taken.
        max_attempts: Re-rolls before giving up with DuplicateIdError.
    """

    def __init__(
        self,
        prefix: str = "node",
        exists: Callable[[str], bool] | None = None,
        max_attempts: int = 16,
    ) -> None:
        self.prefix = _slug(prefix) or "node"
        self.exists = exists
        self.max_attempts = max_attempts

    def _candidate(self, prefix: str) -> str:
        return f"{prefix}-{uuid4().hex[:12]}"

    def next_id(self, hint: str | None = None) -> str:
        """Return a fresh id, optionally prefixed with a slug of ``hint``.

        Raises:
            DuplicateIdError: If every attempt collided.
        """
        prefix = _slug(hint) if hint else ""
        prefix = prefix or self.prefix
        for _ in range(self.max_attempts):
            candidate = self._candidate(prefix)
            if self.exists is None or not self.exists(candidate):
                return candidate
        raise DuplicateIdError(
            f"Could not allocate a unique id after {self.max_attempts} attempts"
        )


class SequentialIdGenerator(IdGenerator):
    """Deterministic ``<prefix>-1``, ``<prefix>-2``, ... ids.

    Used for reproducible fixtures. Taken ids are skipped, so the counter
    only ever moves forward.
    """

    def __init__(
        self,
        prefix: str = "node",
        exists: Callable[[str], bool] | None = None,
        start: int = 1,
    ) -> None:
        super().__init__(prefix, exists, max_attempts=1_000_000)
        self._counter = itertools.count(start)

    def _candidate(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"


__all__ = ["IdGenerator", "SequentialIdGenerator"]
