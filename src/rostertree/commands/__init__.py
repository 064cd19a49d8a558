"""
rostertree.commands - CLI command implementations
"""

from __future__ import annotations

from pathlib import Path

from rostertree.tree.store import TreeStore

__all__ = [
    "example",
    "search",
    "serve",
    "show",
    "validate",
    "load_store",
]


def load_store(path: Path | None) -> TreeStore:
    """Tree from a JSON file, or the sample league when no path is given."""
    from rostertree.tree.sample import league_structure
    from rostertree.tree.serialize import load_tree_file

    if path is None:
        return league_structure()
    return load_tree_file(path)
