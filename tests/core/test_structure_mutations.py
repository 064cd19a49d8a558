"""Tests for OrgTree structural mutations.

insert_child, create_group, delete_subtree, duplicate_subtree and reparent,
including the leaf -> container transition and atomic failure.
"""

import pytest

from rostertree.tree import NodeCategory, TreeNode, TreeStore
from rostertree.tree.engine import OrgTree, resolve_position
from rostertree.tree.errors import (
    CyclicMoveError,
    NodeNotFoundError,
    NotMovableError,
    RootDeletionError,
)
from rostertree.tree.ids import SequentialIdGenerator
from rostertree.tree.serialize import serialize_tree


def _snapshot(tree):
    return serialize_tree(tree.store)


def _fresh_copy(tree):
    return OrgTree.from_dict(
        _snapshot(tree), id_generator=SequentialIdGenerator("n"), check_invariants=True
    )


def _shape(tree, node_id):
    """(category, movable, renamable, [child shapes]) with ids left out."""
    node = tree.get(node_id)
    children = None
    if node.children is not None:
        children = [_shape(tree, c) for c in node.children]
    return node.category, node.movable, node.renamable, children


# ─────────────────────────────────────────────────────────────────────────────
# Positions
# ─────────────────────────────────────────────────────────────────────────────


class TestResolvePosition:
    @pytest.mark.parametrize(
        "position,expected",
        [("front", 0), ("back", 3), (1, 1), (-5, 0), (99, 3), (None, 3)],
    )
    def test_resolve(self, position, expected):
        assert resolve_position(position, 3) == expected

    def test_default_applies_to_none(self):
        assert resolve_position(None, 3, default="front") == 0

    @pytest.mark.parametrize("position", ["middle", True, 1.5])
    def test_invalid(self, position):
        with pytest.raises(ValueError):
            resolve_position(position, 3)


# ─────────────────────────────────────────────────────────────────────────────
# insert_child / create_group
# ─────────────────────────────────────────────────────────────────────────────


class TestInsertChild:
    def test_insert_into_leaf_converts_it(self, leaf_tree):
        entry = leaf_tree.insert_child("a", "X", "Team")

        new_id = entry.after_state["id"]
        assert leaf_tree.get("a").is_folder
        assert leaf_tree.children_of("a") == [new_id]
        assert leaf_tree.get(new_id).name == "X"
        assert leaf_tree.get(new_id).category is NodeCategory.TEAM
        assert entry.after_state["converted"] is True
        assert entry.affected_ids == ["a", new_id]

    def test_default_position_is_front(self, flat_tree):
        entry = flat_tree.insert_child("root", "New")

        assert flat_tree.children_of("root") == [entry.after_state["id"], "a", "b"]

    def test_back_position(self, flat_tree):
        entry = flat_tree.insert_child("root", "New", position="back")

        assert flat_tree.children_of("root")[-1] == entry.after_state["id"]

    def test_index_position(self, flat_tree):
        entry = flat_tree.insert_child("root", "New", position=1)

        assert flat_tree.children_of("root") == ["a", entry.after_state["id"], "b"]

    def test_defaults_for_name_and_category(self, flat_tree):
        entry = flat_tree.insert_child("a")

        node = flat_tree.get(entry.after_state["id"])
        assert node.name == "New Group"
        assert node.category is NodeCategory.DIVISION
        assert node.is_folder

    def test_leaf_child(self, flat_tree):
        entry = flat_tree.insert_child("a", "Sharks", "Team", folder=False)

        assert flat_tree.get(entry.after_state["id"]).is_leaf

    def test_new_ids_are_fresh(self, flat_tree):
        first = flat_tree.insert_child("a").after_state["id"]
        second = flat_tree.insert_child("a").after_state["id"]

        assert first != second
        assert first not in ("root", "a", "b")

    def test_missing_parent(self, flat_tree):
        before = _snapshot(flat_tree)

        with pytest.raises(NodeNotFoundError, match="Parent 'zzz' not found"):
            flat_tree.insert_child("zzz", "X")

        assert _snapshot(flat_tree) == before

    def test_parent_not_movable(self, flat_tree):
        flat_tree.set_capability("a", "movable", False)
        before = _snapshot(flat_tree)

        with pytest.raises(NotMovableError):
            flat_tree.insert_child("a", "X")

        assert _snapshot(flat_tree) == before

    def test_bad_position_leaves_tree_unchanged(self, leaf_tree):
        before = _snapshot(leaf_tree)

        with pytest.raises(ValueError):
            leaf_tree.insert_child("a", "X", position="sideways")

        assert _snapshot(leaf_tree) == before
        assert leaf_tree.get("a").is_leaf

    def test_folder_must_be_a_bool(self, leaf_tree):
        before = _snapshot(leaf_tree)

        with pytest.raises(ValueError, match="folder"):
            leaf_tree.insert_child("a", "X", folder="false")

        assert _snapshot(leaf_tree) == before


class TestCreateGroup:
    def test_appends_under_root(self, flat_tree):
        entry = flat_tree.create_group("Saturday", "Conference")

        new_id = entry.after_state["id"]
        assert flat_tree.children_of("root") == ["a", "b", new_id]
        assert flat_tree.get(new_id).category is NodeCategory.CONFERENCE
        assert flat_tree.get(new_id).is_folder
        assert entry.operation == "create_group"

    def test_makes_tree_non_empty(self):
        tree = OrgTree(TreeStore(TreeNode("root", "Root", NodeCategory.CONFERENCE, children=[])))
        assert tree.is_empty()

        tree.create_group()

        assert not tree.is_empty()


# ─────────────────────────────────────────────────────────────────────────────
# delete_subtree
# ─────────────────────────────────────────────────────────────────────────────


class TestDeleteSubtree:
    def test_removes_node_and_descendants_only(self, nested_tree):
        before = set(nested_tree.store.walk())

        entry = nested_tree.delete_subtree("east")

        removed = {"east", "u10", "lions", "tigers", "u12"}
        assert set(nested_tree.store.walk()) == before - removed
        assert set(entry.after_state["removed_ids"]) == removed
        for node_id in removed:
            assert node_id not in nested_tree.store
            with pytest.raises(NodeNotFoundError):
                nested_tree.parent_of(node_id)
        assert nested_tree.children_of("root") == ["west"]

    def test_affected_ids(self, nested_tree):
        entry = nested_tree.delete_subtree("u10")

        assert entry.affected_ids == ["east", "u10", "lions", "tigers"]

    def test_parent_stays_container(self, nested_tree):
        nested_tree.delete_subtree("bears")

        assert nested_tree.get("u14").is_folder
        assert nested_tree.children_of("u14") == []

    def test_every_node_property(self, nested_tree):
        for node_id in nested_tree.store.descendants("root"):
            tree = _fresh_copy(nested_tree)
            expected = set(tree.store.walk()) - set(tree.store.walk(node_id))

            tree.delete_subtree(node_id)

            assert set(tree.store.walk()) == expected
            assert set(n.id for n in tree.store.all_nodes()) == expected

    def test_root(self, flat_tree):
        with pytest.raises(RootDeletionError):
            flat_tree.delete_subtree("root")

        assert flat_tree.children_of("root") == ["a", "b"]

    def test_missing(self, flat_tree):
        with pytest.raises(NodeNotFoundError):
            flat_tree.delete_subtree("zzz")

    def test_not_movable(self, flat_tree):
        flat_tree.set_capability("a", "movable", False)

        with pytest.raises(NotMovableError):
            flat_tree.delete_subtree("a")

        assert "a" in flat_tree.store


# ─────────────────────────────────────────────────────────────────────────────
# duplicate_subtree
# ─────────────────────────────────────────────────────────────────────────────


class TestDuplicateSubtree:
    def test_inserted_after_original(self, flat_tree):
        entry = flat_tree.duplicate_subtree("a")

        copy_id = entry.after_state["id"]
        assert flat_tree.children_of("root") == ["a", copy_id, "b"]
        assert flat_tree.get(copy_id).name == "a (Copy)"
        assert entry.after_state["position"] == 1

    def test_copy_is_isomorphic_with_fresh_ids(self, nested_tree):
        entry = nested_tree.duplicate_subtree("east")

        copy_id = entry.after_state["id"]
        originals = set(nested_tree.store.walk("east"))
        copies = set(nested_tree.store.walk(copy_id))
        assert originals.isdisjoint(copies)
        assert len(originals) == len(copies)
        assert _shape(nested_tree, copy_id) == _shape(nested_tree, "east")
        assert set(entry.after_state["id_map"]) == originals
        assert set(entry.after_state["id_map"].values()) == copies

    def test_only_root_name_gets_suffix(self, nested_tree):
        entry = nested_tree.duplicate_subtree("u10")

        id_map = entry.after_state["id_map"]
        assert nested_tree.get(id_map["u10"]).name == "Under 10 (Copy)"
        assert nested_tree.get(id_map["lions"]).name == "Lions"
        assert nested_tree.get(id_map["tigers"]).name == "Tigers"
        assert nested_tree.children_of(id_map["u10"]) == [id_map["lions"], id_map["tigers"]]

    def test_copy_is_independent(self, nested_tree):
        entry = nested_tree.duplicate_subtree("u10")
        copy_id = entry.after_state["id"]

        nested_tree.rename("lions", "Big Cats")
        nested_tree.delete_subtree("tigers")

        assert [nested_tree.get(c).name for c in nested_tree.children_of(copy_id)] == [
            "Lions",
            "Tigers",
        ]

    def test_leaf_copy_stays_leaf(self, nested_tree):
        entry = nested_tree.duplicate_subtree("bears")

        assert nested_tree.get(entry.after_state["id"]).is_leaf
        assert nested_tree.children_of("u14") == ["bears", entry.after_state["id"]]

    def test_flags_are_copied(self, flat_tree):
        flat_tree.set_capability("a", "renamable", False)

        entry = flat_tree.duplicate_subtree("a")

        assert flat_tree.get(entry.after_state["id"]).renamable is False

    def test_custom_suffix(self, flat_store):
        tree = OrgTree(flat_store, copy_suffix=" copy")

        entry = tree.duplicate_subtree("b")

        assert tree.get(entry.after_state["id"]).name == "b copy"

    def test_root_is_disallowed(self, flat_tree):
        before = _snapshot(flat_tree)

        with pytest.raises(RootDeletionError, match="duplicate the root"):
            flat_tree.duplicate_subtree("root")

        assert _snapshot(flat_tree) == before

    def test_missing(self, flat_tree):
        with pytest.raises(NodeNotFoundError):
            flat_tree.duplicate_subtree("zzz")


# ─────────────────────────────────────────────────────────────────────────────
# reparent
# ─────────────────────────────────────────────────────────────────────────────


class TestReparent:
    def test_move_to_back(self, flat_tree):
        entry = flat_tree.reparent("b", "a", "back")

        assert flat_tree.children_of("root") == ["a"]
        assert flat_tree.children_of("a") == ["b"]
        assert flat_tree.parent_of("b") == "a"
        assert entry.before_state == {"parent_id": "root", "position": 1}
        assert entry.affected_ids == ["root", "a", "b"]

    def test_root_into_descendant(self, flat_tree):
        before = _snapshot(flat_tree)

        with pytest.raises(CyclicMoveError):
            flat_tree.reparent("root", "a", "back")

        assert _snapshot(flat_tree) == before

    def test_into_itself(self, flat_tree):
        with pytest.raises(CyclicMoveError):
            flat_tree.reparent("a", "a")

    def test_into_descendant(self, nested_tree):
        with pytest.raises(CyclicMoveError):
            nested_tree.reparent("east", "lions")

        assert nested_tree.parent_of("east") == "root"

    def test_into_leaf_converts_it(self, nested_tree):
        entry = nested_tree.reparent("bears", "lions")

        assert nested_tree.get("lions").is_folder
        assert nested_tree.children_of("lions") == ["bears"]
        assert nested_tree.children_of("u14") == []
        assert entry.after_state["converted"] is True

    def test_move_subtree_keeps_descendants(self, nested_tree):
        nested_tree.reparent("u10", "west", "front")

        assert nested_tree.children_of("west") == ["u10", "u14"]
        assert nested_tree.children_of("u10") == ["lions", "tigers"]
        assert nested_tree.children_of("east") == ["u12"]
        assert nested_tree.store.depth("lions") == 3

    def test_reorder_within_parent(self, nested_tree):
        nested_tree.reparent("u10", "east", "back")
        assert nested_tree.children_of("east") == ["u12", "u10"]

        entry = nested_tree.reparent("u10", "east", 0)
        assert nested_tree.children_of("east") == ["u10", "u12"]
        assert entry.affected_ids == ["east", "u10"]

    def test_exactly_one_instance_after_move(self, nested_tree):
        nested_tree.reparent("tigers", "u14", 1)

        owners = [n.id for n in nested_tree.store.all_nodes() if n.has_child("tigers")]
        assert owners == ["u14"]
        assert nested_tree.children_of("u14") == ["bears", "tigers"]

    def test_missing_node_or_target(self, flat_tree):
        with pytest.raises(NodeNotFoundError):
            flat_tree.reparent("zzz", "a")
        with pytest.raises(NodeNotFoundError, match="Target 'zzz' not found"):
            flat_tree.reparent("a", "zzz")

    def test_node_not_movable(self, flat_tree):
        flat_tree.set_capability("b", "movable", False)

        with pytest.raises(NotMovableError):
            flat_tree.reparent("b", "a")

        assert flat_tree.parent_of("b") == "root"

    def test_target_not_accepting(self, flat_tree):
        flat_tree.set_capability("a", "movable", False)

        with pytest.raises(NotMovableError):
            flat_tree.reparent("b", "a")

    def test_bad_position(self, flat_tree):
        before = _snapshot(flat_tree)

        with pytest.raises(ValueError):
            flat_tree.reparent("b", "a", "middle")

        assert _snapshot(flat_tree) == before

    def test_cycle_iff_target_in_subtree(self, nested_tree):
        ids = list(nested_tree.store.walk())
        for node_id in ids:
            for target_id in ids:
                tree = _fresh_copy(nested_tree)
                in_subtree = target_id in set(tree.store.walk(node_id))
                if in_subtree:
                    with pytest.raises(CyclicMoveError):
                        tree.reparent(node_id, target_id)
                    continue
                old_parent = tree.parent_of(node_id)
                tree.reparent(node_id, target_id)
                assert tree.parent_of(node_id) == target_id
                if old_parent != target_id:
                    assert node_id not in tree.children_of(old_parent)


# ─────────────────────────────────────────────────────────────────────────────
# Log and notifications
# ─────────────────────────────────────────────────────────────────────────────


class TestCommit:
    def test_successful_mutations_are_logged(self, flat_tree):
        flat_tree.rename("a", "A")
        flat_tree.insert_child("a")
        flat_tree.reparent("b", "a")

        operations = [e.operation for e in flat_tree.mutation_log.iter_entries()]
        assert operations == ["rename", "insert_child", "reparent"]

    def test_failures_are_not_logged_or_published(self, flat_tree):
        seen = []
        flat_tree.subscribe(seen.append)

        with pytest.raises(RootDeletionError):
            flat_tree.delete_subtree("root")

        assert len(flat_tree.mutation_log) == 0
        assert seen == []

    def test_subscribers_get_affected_ids(self, flat_tree):
        seen = []
        flat_tree.subscribe(lambda entry: seen.append(entry.affected_ids))

        flat_tree.duplicate_subtree("b")

        assert seen == [["root", "n-1"]]

    def test_threadsafe_engine_behaves_the_same(self, flat_store):
        tree = OrgTree(flat_store, threadsafe=True, check_invariants=True)

        tree.reparent("b", "a")

        assert tree.children_of("a") == ["b"]

    def test_from_config(self, flat_store):
        from rostertree.config import ConfigLoader

        config = ConfigLoader.from_dict(
            {"tree": {"copy_suffix": " #2", "new_node_name": "Team", "id_prefix": "Grp"}}
        )
        tree = OrgTree.from_config(flat_store, config)

        copy_id = tree.duplicate_subtree("a").after_state["id"]
        new_id = tree.insert_child("b").after_state["id"]

        assert tree.get(copy_id).name == "a #2"
        assert tree.get(new_id).name == "Team"
        assert new_id.startswith("grp-")
        assert tree.children_of("b") == [new_id]
