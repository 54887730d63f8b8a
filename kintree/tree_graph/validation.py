"""Advisory integrity checks for snapshots and adjacency indexes.

Nothing here blocks a write; callers decide what to do with the findings.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

import networkx as nx

from ..schemas import GraphNode, ValidationReport

if TYPE_CHECKING:
    from .index import AdjacencyIndex

_REL_LABELS = (("parents", "parent"), ("spouses", "spouse"), ("children", "child"))


def validate_snapshot(nodes: Iterable[GraphNode]) -> ValidationReport:
    nodes = list(nodes)
    known = {n.id for n in nodes}
    errors: List[str] = []

    for node in nodes:
        if not node.id:
            errors.append("Person missing ID")
            continue
        data = node.data or {}
        if not (data.get("name") or data.get("first name") or data.get("last name")):
            errors.append(f"Person {node.id} missing name")
        for attr, label in _REL_LABELS:
            for rid in getattr(node.rels, attr):
                if rid not in known:
                    errors.append(f"Person {node.id} references non-existent {label} {rid}")

    return ValidationReport(is_valid=not errors, errors=errors)


def validate_index(index: "AdjacencyIndex", person_ids: Iterable[str]) -> ValidationReport:
    known = set(person_ids)
    errors: List[str] = []

    for person_id, entry in index.entries.items():
        if person_id not in known:
            errors.append(f"Relationship index contains non-existent person {person_id}")
            continue
        for attr, label in _REL_LABELS:
            for rid in getattr(entry, attr):
                if rid not in known:
                    errors.append(f"Person {person_id} references non-existent {label} {rid}")

    return ValidationReport(is_valid=not errors, errors=errors)


def parent_graph(index: "AdjacencyIndex") -> nx.DiGraph:
    """Directed parent -> child graph from both the parents and children buckets."""
    g = nx.DiGraph()
    for person_id, entry in index.entries.items():
        g.add_node(person_id)
        for parent_id in entry.parents:
            g.add_edge(parent_id, person_id)
        for child_id in entry.children:
            g.add_edge(person_id, child_id)
    return g


def find_parent_cycles(index: "AdjacencyIndex") -> List[str]:
    """One warning per parent/child cycle (a person being their own ancestor)."""
    warnings = []
    for cycle in nx.simple_cycles(parent_graph(index)):
        warnings.append(f"Cycle detected in parent-child relationships: {' -> '.join(cycle)}")
    return warnings
