"""
rostertree.commands.show - Print a tree as an outline or JSON.
"""

from __future__ import annotations

import argparse
import json

from rostertree.commands import load_store
from rostertree.tree.serialize import serialize_tree, to_outline


def run(args: argparse.Namespace) -> int:
    """Run the show command."""
    store = load_store(args.file)
    start = args.node or store.root_id
    store.get(start)

    if args.json:
        data = serialize_tree(store)
        if start != store.root_id:
            subtree = set(store.walk(start))
            data = {
                "rootId": start,
                "nodes": {k: v for k, v in data["nodes"].items() if k in subtree},
            }
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    print(to_outline(store, start, show_ids=args.ids), end="")
    return 0
