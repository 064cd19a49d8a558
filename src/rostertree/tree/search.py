"""Search Index - Substring matching with ancestor match propagation.

A node matches a query when its name contains the query,
case-insensitively. A container "contains a match" when any proper
descendant matches; those containers are the ones a view auto-expands.
The empty query matches nothing, which is how search is switched off.
"""

from __future__ import annotations

from typing import Any

from rostertree.tree.store import TreeStore
from rostertree.tree.TreeNode import TreeNode


class SearchIndex:
    """Query evaluation over the current TreeStore snapshot.

    The only observable state is the last query string. Ancestor match
    results are cached per query and thrown away whenever the store's
    version moves (any structural change or rename).

    Args:
        store: The store to search.
        memoize: Cache ``subtree_contains_match`` results.
    """

    def __init__(self, store: TreeStore, memoize: bool = True) -> None:
        self.store = store
        self.memoize = memoize
        self._query = ""
        self._memo: dict[str, bool] = {}
        self._memo_key: tuple[int, str] | None = None

    @property
    def query(self) -> str:
        """The last query passed to ``set_query``."""
        return self._query

    def set_query(self, text: str | None) -> None:
        """Set the active query; None or "" deactivates search."""
        self._query = text or ""

    @property
    def active(self) -> bool:
        return bool(self._query)

    def _resolve(self, query: str | None) -> str:
        return (self._query if query is None else query).lower()

    # ─────────────────────────────────────────────────────────────────────────
    # Match predicates
    # ─────────────────────────────────────────────────────────────────────────

    def matches(self, node: TreeNode | str, query: str | None = None) -> bool:
        """True if the node's name contains the query (case-insensitive).

        Args:
            node: A TreeNode or a node id.
            query: Query text; defaults to the active query.
        """
        if isinstance(node, str):
            node = self.store.get(node)
        needle = self._resolve(query)
        if not needle:
            return False
        return needle in node.name.lower()

    def subtree_contains_match(self, node_id: str, query: str | None = None) -> bool:
        """True if any proper descendant of ``node_id`` matches.

        The node's own name is not considered.
        """
        self.store.get(node_id)
        needle = self._resolve(query)
        if not needle:
            return False

        memo = self._memo_for(needle)
        if node_id in memo:
            return memo[node_id]

        # Post-order: every child is decided before its parent.
        results: dict[str, bool] = {}
        for current in self.store.walk(node_id, order="post"):
            if current in memo:
                results[current] = memo[current]
                continue
            found = False
            for child_id in self.store.get(current).children or []:
                if results.get(child_id) or self.matches(child_id, needle):
                    found = True
                    break
            results[current] = found
        if self.memoize:
            memo.update(results)
        return results[node_id]

    def _memo_for(self, needle: str) -> dict[str, bool]:
        key = (self.store.version, needle)
        if self._memo_key != key:
            self._memo = {}
            self._memo_key = key
        return self._memo if self.memoize else {}

    # ─────────────────────────────────────────────────────────────────────────
    # Tree-wide queries
    # ─────────────────────────────────────────────────────────────────────────

    def direct_matches(self, query: str | None = None) -> list[str]:
        """Ids of all matching nodes, pre-order from the root."""
        needle = self._resolve(query)
        if not needle:
            return []
        return [node_id for node_id in self.store.walk() if self.matches(node_id, needle)]

    def expanded_ids(self, query: str | None = None) -> list[str]:
        """Containers to auto-expand because a descendant matches, pre-order."""
        needle = self._resolve(query)
        if not needle:
            return []
        return [
            node_id
            for node_id in self.store.walk()
            if self.store.get(node_id).is_folder and self.subtree_contains_match(node_id, needle)
        ]

    def first_match(self, query: str | None = None) -> str | None:
        """The node a view should scroll to.

        Prefers the first direct match in pre-order; failing that, the
        first matching child of an auto-expanded container.
        """
        direct = self.direct_matches(query)
        if direct:
            return direct[0]
        needle = self._resolve(query)
        for folder_id in self.expanded_ids(needle):
            for child_id in self.store.children_of(folder_id):
                if self.matches(child_id, needle):
                    return child_id
        return None

    def default_expanded(self) -> list[str]:
        """Expansion used when no query is active: the root and its containers."""
        root = self.store.root
        return [root.id] + [
            child_id for child_id in root.children or [] if self.store.get(child_id).is_folder
        ]

    def highlight(self, name: str, query: str | None = None) -> tuple[str, str, str]:
        """Split ``name`` around the first occurrence of the query.

        Returns:
            (before, match, after); (name, "", "") when nothing matches.
        """
        needle = self._resolve(query)
        if not needle:
            return name, "", ""
        # Lowercasing can lengthen a character (dotted capital I), so map each
        # lowered position back to the character it came from.
        lowered = []
        origin: list[int] = []
        for i, ch in enumerate(name):
            low = ch.lower()
            lowered.append(low)
            origin.extend([i] * len(low))
        start = "".join(lowered).find(needle)
        if start < 0:
            return name, "", ""
        begin = origin[start]
        end = origin[start + len(needle) - 1] + 1
        return name[:begin], name[begin:end], name[end:]

    def summary(self, query: str | None = None) -> dict[str, Any]:
        """Everything a view needs to render one search state."""
        text = self._query if query is None else query
        if not text:
            return {
                "query": "",
                "first_match": None,
                "direct_matches": [],
                "expanded": self.default_expanded(),
            }
        return {
            "query": text,
            "first_match": self.first_match(text),
            "direct_matches": self.direct_matches(text),
            "expanded": self.expanded_ids(text),
        }


__all__ = ["SearchIndex"]
