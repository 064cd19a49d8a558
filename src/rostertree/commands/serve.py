"""
rostertree.commands.serve - Start the REST API server.
"""

from __future__ import annotations

import argparse
import sys

from rostertree.commands import load_store
from rostertree.config import get_config
from rostertree.tree.engine import OrgTree


def run(args: argparse.Namespace) -> int:
    """Run the serve command."""
    from rostertree.server import create_app

    config = get_config(args.config)
    store = load_store(args.file)
    tree = OrgTree.from_config(store, config, threadsafe=True)
    app = create_app(tree, config)

    host = args.host or config.get("server.host", "127.0.0.1")
    port = args.port or int(config.get("server.port", 5050))
    source = args.file or "sample league"
    print(f"Serving {source} ({store.node_count()} nodes) on http://{host}:{port}", file=sys.stderr)
    app.run(host=host, port=port, debug=False, threaded=True)
    return 0
