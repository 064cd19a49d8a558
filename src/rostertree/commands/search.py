"""
rostertree.commands.search - Search node names from the command line.
"""

from __future__ import annotations

import argparse
import json

from rostertree.commands import load_store
from rostertree.tree.search import SearchIndex


def run(args: argparse.Namespace) -> int:
    """Run the search command.

    Returns:
        0 if anything matched, 1 otherwise.
    """
    store = load_store(args.file)
    index = SearchIndex(store)
    index.set_query(args.query)
    summary = index.summary()

    if args.json:
        print(json.dumps(summary, indent=2))
        return 0 if summary["direct_matches"] else 1

    if not summary["direct_matches"]:
        if not args.quiet:
            print(f"No matches for '{args.query}'")
        return 1

    for node_id in summary["direct_matches"]:
        node = store.get(node_id)
        before, match, after = index.highlight(node.name)
        path = " > ".join(store.get(a).name for a in reversed(list(store.ancestors(node_id))))
        marker = "*" if node_id == summary["first_match"] else " "
        print(f"{marker} {before}[{match}]{after}  ({path})  [{node_id}]")
    return 0
