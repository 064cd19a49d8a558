"""Shared fixtures for tool, server, config and CLI tests."""

import pytest

from rostertree.tree.engine import OrgTree
from rostertree.tree.ids import SequentialIdGenerator
from rostertree.tree.sample import league_structure
from rostertree.tree.serialize import dump_tree


@pytest.fixture
def league():
    """Engine over a fresh sample league with deterministic ids."""
    return OrgTree(
        league_structure(),
        id_generator=SequentialIdGenerator("n"),
        check_invariants=True,
    )


@pytest.fixture
def league_file(tmp_path):
    """The sample league written to a JSON file."""
    path = tmp_path / "league.json"
    path.write_text(dump_tree(league_structure()), encoding="utf-8")
    return path


@pytest.fixture
def app(league):
    """Flask app serving the sample league."""
    from rostertree.server.app import create_app

    application = create_app(league)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
