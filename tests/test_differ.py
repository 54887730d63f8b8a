"""Tests for kintree/tree_graph/differ.py: snapshot change detection."""
import pytest

from kintree.tree_graph.differ import changed_fields, diff_snapshots, filter_real_nodes, is_placeholder_name
from tests.conftest import node


class TestPlaceholders:
    @pytest.mark.parametrize("name", ["", "  ", "Father", "MOTHER", "spouse", "Unknown", "Unnamed child",
                                      "An unknown person"])
    def test_placeholder(self, name):
        assert is_placeholder_name(name)

    @pytest.mark.parametrize("name", ["Fatherly Joe", "Mary", "Sonny"])
    def test_real_name(self, name):
        assert not is_placeholder_name(name)


class TestFilterRealNodes:
    def test_drops_placeholders(self):
        nodes = [node("1", "Father"), node("2", "Ada"), node("3")]
        assert [n.id for n in filter_real_nodes(nodes)] == ["2"]

    def test_first_name_fallback(self):
        nodes = [node("1", **{"first name": "Ada"})]
        assert [n.id for n in filter_real_nodes(nodes)] == ["1"]

    def test_more_populated_duplicate_wins(self):
        nodes = [node("1", "Ada"), node("2", "Ada", birthday="1815-12-10")]
        assert [n.id for n in filter_real_nodes(nodes)] == ["2"]

    def test_first_seen_wins_ties(self):
        nodes = [node("1", "Ada", gender="F"), node("2", "Ada", gender="M")]
        assert [n.id for n in filter_real_nodes(nodes)] == ["1"]


class TestChangedFields:
    def test_changed_and_added(self):
        before = {"name": "Ada", "bio": "x", "avatar": "a.png"}
        after = {"name": "Ada", "bio": "y", "city": "London"}
        assert changed_fields(before, after) == {"bio": "y", "city": "London"}

    def test_explicit_empty_is_a_change(self):
        assert changed_fields({"bio": "x"}, {"bio": ""}) == {"bio": ""}


class TestDiffSnapshots:
    def test_new_updated_deleted(self):
        original = [node("1", "Ada"), node("2", "Bob"), node("3", "Cy")]
        current = [node("1", "Ada"), node("2", "Bob", bio="hi"), node("4", "Dee")]
        diff = diff_snapshots(original, current)
        assert [n.id for n in diff.new_nodes] == ["4"]
        assert [u.node.id for u in diff.updated_nodes] == ["2"]
        assert diff.updated_nodes[0].changes == {"bio": "hi"}
        assert diff.deleted_ids == ["3"]

    def test_identical_snapshots(self):
        nodes = [node("1", "Ada", parents=["2"]), node("2", "Bob")]
        assert diff_snapshots(nodes, nodes).is_empty

    def test_rels_only_change_is_not_an_update(self):
        original = [node("1", "Ada"), node("2", "Bob")]
        current = [node("1", "Ada", parents=["2"]), node("2", "Bob")]
        assert diff_snapshots(original, current).is_empty

    def test_placeholders_never_created(self):
        diff = diff_snapshots([node("1", "Ada")], [node("1", "Ada"), node("2", "Mother")])
        assert diff.new_nodes == []

    def test_placeholders_never_deleted(self):
        diff = diff_snapshots([node("1", "Ada"), node("2", "Father")], [node("1", "Ada")])
        assert diff.deleted_ids == []

    def test_collapsed_duplicate_not_deleted(self):
        original = [node("1", "Ada"), node("2", "Ada", bio="x")]
        diff = diff_snapshots(original, original)
        assert diff.deleted_ids == []
        assert diff.is_empty

    def test_collapsed_duplicate_not_created(self):
        current = [node("1", "Ada", bio="x"), node("2", "Ada")]
        diff = diff_snapshots([node("1", "Ada", bio="x")], current)
        assert diff.new_nodes == []
