"""rostertree.server - Flask REST API server for tree editing.

Provides a thin REST wrapper over the pure functions in
``rostertree.tools``, exposing the tree via HTTP endpoints for an
interactive tree-editing UI.
"""

from rostertree.server.app import create_app

__all__ = ["create_app"]
