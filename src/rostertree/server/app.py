"""rostertree.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: all logic delegates to pure functions in
``rostertree.tools``. No tree logic is duplicated here.

State pattern:
    _state = {"tree": tree, "config": config, "start_time": time.time()}
"""

from __future__ import annotations

import time
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from rostertree import __version__
from rostertree.config import ConfigLoader, DEFAULT_CONFIG
from rostertree.tools import (
    _get_mutation_log,
    _get_node,
    _get_tree,
    _mutate_convert_to_folder,
    _mutate_create_group,
    _mutate_delete_subtree,
    _mutate_duplicate_subtree,
    _mutate_edit,
    _mutate_insert_child,
    _mutate_rename,
    _mutate_reparent,
    _mutate_set_capability,
    _search,
    _validate,
)
from rostertree.tree.engine import OrgTree


def _status_for(result: dict[str, Any]) -> int:
    """HTTP status for a tool result: 200, 404 for unknown ids, else 400."""
    if result.get("success"):
        return 200
    return 404 if result.get("error_kind") == "not_found" else 400


def create_app(tree: OrgTree, config: ConfigLoader | None = None) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        tree: The engine to serve. Flask's development server handles
            requests on threads, so the engine should be built with
            ``threadsafe=True``.
        config: rostertree configuration (defaults when None).

    Returns:
        Configured Flask application.
    """
    config = config or ConfigLoader.from_dict(DEFAULT_CONFIG)
    app = Flask(__name__)

    if config.get("server.cors", True):
        CORS(app)

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    _state: dict[str, Any] = {
        "tree": tree,
        "config": config,
        "start_time": time.time(),
    }

    def _body() -> dict[str, Any]:
        data = request.get_json(force=True, silent=True)
        return data if isinstance(data, dict) else {}

    def _missing(*names: str):
        return (
            jsonify({"success": False, "error": f"{', '.join(names)} required"}),
            400,
        )

    def _respond(result: dict[str, Any]):
        return jsonify(result), _status_for(result)

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        """Service banner; the UI lives outside this package."""
        return jsonify({"name": "rostertree", "version": __version__})

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Tree size, validity and uptime."""
        t = _state["tree"]
        with t.locked():
            status = {
                "node_count": t.store.node_count(),
                "root_id": t.root_id,
                "is_empty": t.is_empty(),
                "mutation_count": len(t.mutation_log),
                "uptime": round(time.time() - _state["start_time"], 3),
                **_validate(t),
            }
        return jsonify(status)

    @app.route("/api/tree")
    def api_tree():
        """GET /api/tree - Whole tree as {rootId, nodes}."""
        return jsonify(_get_tree(_state["tree"]))

    @app.route("/api/node/<node_id>")
    def api_node(node_id: str):
        """GET /api/node/<node_id> - One node with parent and depth."""
        result = _get_node(_state["tree"], node_id)
        if "error" in result:
            return jsonify(result), 404
        return jsonify(result)

    @app.route("/api/search")
    def api_search():
        """GET /api/search?q=<query> - Matches, expansion and scroll target."""
        return jsonify(_search(_state["tree"], request.args.get("q", "")))

    @app.route("/api/mutations")
    def api_mutations():
        """GET /api/mutations?limit=&since= - Mutation history."""
        try:
            limit = int(request.args.get("limit", "50"))
        except ValueError:
            return jsonify({"success": False, "error": "limit must be an integer"}), 400
        result = _get_mutation_log(_state["tree"], limit, request.args.get("since"))
        return _respond(result)

    # ─────────────────────────────────────────────────────────────────
    # Mutation POST endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/mutate/rename", methods=["POST"])
    def api_mutate_rename():
        """POST /api/mutate/rename - {node_id, new_name}."""
        data = _body()
        node_id = data.get("node_id", "")
        new_name = data.get("new_name")
        if not node_id or not isinstance(new_name, str):
            return _missing("node_id", "new_name")
        return _respond(_mutate_rename(_state["tree"], node_id, new_name))

    @app.route("/api/mutate/edit", methods=["POST"])
    def api_mutate_edit():
        """POST /api/mutate/edit - {node_id, name, category}."""
        data = _body()
        node_id = data.get("node_id", "")
        name = data.get("name")
        category = data.get("category", "")
        if not node_id or not isinstance(name, str) or not category:
            return _missing("node_id", "name", "category")
        return _respond(_mutate_edit(_state["tree"], node_id, name, category))

    @app.route("/api/mutate/insert", methods=["POST"])
    def api_mutate_insert():
        """POST /api/mutate/insert - {parent_id, name?, category?, position?, folder?}."""
        data = _body()
        parent_id = data.get("parent_id", "")
        if not parent_id:
            return _missing("parent_id")
        result = _mutate_insert_child(
            _state["tree"],
            parent_id,
            name=data.get("name"),
            category=data.get("category"),
            position=data.get("position"),
            folder=data.get("folder", True),
        )
        return _respond(result)

    @app.route("/api/mutate/group", methods=["POST"])
    def api_mutate_group():
        """POST /api/mutate/group - {name?, category?} top-level group."""
        data = _body()
        result = _mutate_create_group(_state["tree"], data.get("name"), data.get("category"))
        return _respond(result)

    @app.route("/api/mutate/delete", methods=["POST"])
    def api_mutate_delete():
        """POST /api/mutate/delete - {node_id}. Deletes the whole subtree."""
        node_id = _body().get("node_id", "")
        if not node_id:
            return _missing("node_id")
        return _respond(_mutate_delete_subtree(_state["tree"], node_id, confirm=True))

    @app.route("/api/mutate/duplicate", methods=["POST"])
    def api_mutate_duplicate():
        """POST /api/mutate/duplicate - {node_id}."""
        node_id = _body().get("node_id", "")
        if not node_id:
            return _missing("node_id")
        return _respond(_mutate_duplicate_subtree(_state["tree"], node_id))

    @app.route("/api/mutate/move", methods=["POST"])
    def api_mutate_move():
        """POST /api/mutate/move - {node_id, new_parent_id, position?} (drag and drop)."""
        data = _body()
        node_id = data.get("node_id", "")
        new_parent_id = data.get("new_parent_id", "")
        if not node_id or not new_parent_id:
            return _missing("node_id", "new_parent_id")
        result = _mutate_reparent(
            _state["tree"], node_id, new_parent_id, data.get("position", "back")
        )
        return _respond(result)

    @app.route("/api/mutate/capability", methods=["POST"])
    def api_mutate_capability():
        """POST /api/mutate/capability - {node_id, flag, value}."""
        data = _body()
        node_id = data.get("node_id", "")
        flag = data.get("flag", "")
        if not node_id or not flag or "value" not in data:
            return _missing("node_id", "flag", "value")
        return _respond(_mutate_set_capability(_state["tree"], node_id, flag, data["value"]))

    @app.route("/api/mutate/convert", methods=["POST"])
    def api_mutate_convert():
        """POST /api/mutate/convert - {node_id} leaf to folder."""
        node_id = _body().get("node_id", "")
        if not node_id:
            return _missing("node_id")
        return _respond(_mutate_convert_to_folder(_state["tree"], node_id))

    return app
