"""
rostertree.commands.example - Print the sample league tree.

Handy as a starting file: ``rostertree example > league.json``.
"""

from __future__ import annotations

import argparse

from rostertree.tree.sample import league_structure
from rostertree.tree.serialize import dump_tree, to_outline


def run(args: argparse.Namespace) -> int:
    """Run the example command."""
    store = league_structure()
    if args.outline:
        print(to_outline(store), end="")
    else:
        print(dump_tree(store), end="")
    return 0
