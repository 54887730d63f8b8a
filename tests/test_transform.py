"""Tests for kintree/tree_graph/transform.py: records to chart snapshot."""
from kintree.models import Status
from kintree.schemas import DateRange, FamilyOut, PersonOut, RelationshipOut, TransformOptions
from kintree.tree_graph import transform
from kintree.tree_graph.differ import diff_snapshots
from kintree.tree_graph.transform import apply_filters, transform_family_tree


def _person(pid, **kw):
    kw.setdefault("name", pid.title())
    kw.setdefault("is_public", True)
    return PersonOut(id=pid, **kw)


def _rel(rid, a, b, rel_type, bidirectional=False):
    return RelationshipOut(id=rid, person_a=a, person_b=b, type=rel_type, is_bidirectional=bidirectional)


PERSONS = [
    _person("dad", birth_date="1950-03-01"),
    _person("mom", birth_date="1952-07-15"),
    _person("kid", birth_date="1980-01-01"),
    _person("secret", is_public=False, birth_date="1982-01-01"),
]
RELS = [
    _rel("r1", "dad", "kid", "parent"),
    _rel("r2", "mom", "kid", "parent"),
    _rel("r3", "dad", "mom", "spouse", True),
    _rel("r4", "dad", "secret", "parent"),
]


class TestFilters:
    def test_private_hidden_by_default(self):
        ids = [p.id for p in apply_filters(PERSONS, TransformOptions())]
        assert ids == ["dad", "mom", "kid"]

    def test_inactive_hidden_by_default(self):
        persons = [_person("a"), _person("b", status=Status.ARCHIVED)]
        assert [p.id for p in apply_filters(persons, TransformOptions())] == ["a"]

    def test_include_private(self):
        assert len(apply_filters(PERSONS, TransformOptions(include_private=True))) == 4

    def test_date_window_inclusive(self):
        options = TransformOptions(filter_by_date_range=DateRange(start_date="1950-03-01", end_date="1952-07-15"))
        assert [p.id for p in apply_filters(PERSONS, options)] == ["dad", "mom"]

    def test_no_birth_date_passes_window(self):
        persons = [_person("a"), _person("b", birth_date="1700-01-01")]
        options = TransformOptions(filter_by_date_range=DateRange(start_date="1900-01-01"))
        assert [p.id for p in apply_filters(persons, options)] == ["a"]

    def test_unparseable_birth_date_passes_with_warning(self):
        warnings = []
        persons = [_person("a", birth_date="around 1900")]
        options = TransformOptions(filter_by_date_range=DateRange(end_date="1800-01-01"))
        assert [p.id for p in apply_filters(persons, options, warnings)] == ["a"]
        assert len(warnings) == 1


class TestTransform:
    def test_nodes_and_rels(self):
        result = transform_family_tree(PERSONS, [], RELS)
        assert [n.id for n in result.nodes] == ["dad", "mom", "kid"]
        by_id = {n.id: n for n in result.nodes}
        assert by_id["kid"].rels.parents == ["dad", "mom"]
        assert by_id["dad"].rels.spouses == ["mom"]
        assert by_id["mom"].rels.spouses == ["dad"]
        assert by_id["kid"].data["name"] == "Kid"

    def test_hidden_person_never_referenced(self):
        result = transform_family_tree(PERSONS, [], RELS)
        dad = next(n for n in result.nodes if n.id == "dad")
        assert dad.rels.children == ["kid"]

    def test_metadata(self):
        result = transform_family_tree(PERSONS, [FamilyOut(id="f1", children=["kid"])], RELS)
        meta = result.metadata
        assert meta.person_count == 3
        assert meta.family_count == 1
        assert meta.relationship_count == 4
        assert meta.errors == []
        assert meta.transformation_time_ms >= 0

    def test_dangling_edge_is_warning(self):
        result = transform_family_tree(PERSONS, [], RELS + [_rel("r9", "kid", "ghost", "sibling")])
        assert len(result.nodes) == 3
        assert any("ghost" in w for w in result.metadata.warnings)

    def test_cycle_warning_only_when_asked(self):
        rels = [_rel("r1", "dad", "kid", "parent"), _rel("r2", "kid", "dad", "parent")]
        assert transform_family_tree(PERSONS, [], rels).metadata.warnings == []
        result = transform_family_tree(PERSONS, [], rels, TransformOptions(detect_cycles=True))
        assert len(result.nodes) == 3
        assert any("Cycle detected" in w for w in result.metadata.warnings)

    def test_failure_is_reported_not_raised(self, monkeypatch):
        def boom(*args):
            raise RuntimeError("index exploded")

        monkeypatch.setattr(transform, "build_adjacency_index", boom)
        result = transform_family_tree(PERSONS, [], RELS)
        assert result.nodes == []
        assert result.metadata.errors == ["Transformation error: index exploded"]

    def test_snapshot_diffs_clean_against_itself(self):
        nodes = transform_family_tree(PERSONS, [], RELS, TransformOptions(include_private=True)).nodes
        assert diff_snapshots(nodes, nodes).is_empty
