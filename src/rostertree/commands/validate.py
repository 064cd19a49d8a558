"""
rostertree.commands.validate - Check a tree file against the structural invariants.
"""

from __future__ import annotations

import argparse
import json
import sys

from rostertree.tree.errors import TreeFormatError
from rostertree.tree.serialize import load_tree_file


def run(args: argparse.Namespace) -> int:
    """Run the validate command.

    Returns:
        0 when the file holds a consistent tree, 1 otherwise.
    """
    try:
        store = load_tree_file(args.file)
    except TreeFormatError as e:
        if args.json:
            print(json.dumps({"valid": False, "problems": [str(e)]}, indent=2))
        else:
            print(f"INVALID {args.file}: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({"valid": True, "problems": [], "node_count": store.node_count()}))
    elif not args.quiet:
        print(f"OK {args.file}: {store.node_count()} nodes")
    return 0
