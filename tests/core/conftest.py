"""Pytest fixtures for core tests."""

import pytest


def _engine(store):
    from rostertree.tree.engine import OrgTree
    from rostertree.tree.ids import SequentialIdGenerator

    return OrgTree(store, id_generator=SequentialIdGenerator("n"), check_invariants=True)


@pytest.fixture
def flat_store():
    """root -> [a, b], both empty containers."""
    from rostertree.tree.builder import TreeBuilder

    builder = TreeBuilder("root", "Root")
    builder.add("a", "a")
    builder.add("b", "b")
    return builder.build()


@pytest.fixture
def flat_tree(flat_store):
    """Engine over root -> [a, b]."""
    return _engine(flat_store)


@pytest.fixture
def leaf_tree():
    """root -> [a] with a a leaf."""
    from rostertree.tree.builder import TreeBuilder

    builder = TreeBuilder("root", "Root")
    builder.add("a", "a", "Team", folder=False)
    return _engine(builder.build())


@pytest.fixture
def nested_tree():
    """Three levels with mixed leaves and containers.

    root
      east (Conference)
        u10 (Division) -> [lions (Team), tigers (Team)]
        u12 (Division) -> []
      west (Conference)
        u14 (Division) -> [bears (Team)]
    """
    from rostertree.tree.builder import TreeBuilder

    builder = TreeBuilder("root", "League", "Conference")
    builder.add("east", "East", "Conference")
    builder.add("u10", "Under 10", "Division", parent_id="east")
    builder.add("lions", "Lions", "Team", parent_id="u10", folder=False)
    builder.add("tigers", "Tigers", "Team", parent_id="u10", folder=False)
    builder.add("u12", "Under 12", "Division", parent_id="east")
    builder.add("west", "West", "Conference")
    builder.add("u14", "Under 14", "Division", parent_id="west")
    builder.add("bears", "Bears", "Team", parent_id="u14", folder=False)
    return _engine(builder.build())


@pytest.fixture
def league_tree():
    """Engine over the sample league."""
    from rostertree.tree.sample import league_structure

    return _engine(league_structure())
