"""Change detection between two chart snapshots.

The chart widget creates stub nodes for relatives the user hasn't filled in
("father", "mother", "unnamed", ...). Those are never treated as people: they
are not created when they appear and not deleted when they disappear.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from ..schemas import GraphNode, NodeUpdate, TreeDiff

logger = logging.getLogger(__name__)

PLACEHOLDER_NAMES = frozenset(("unknown", "father", "mother", "spouse", "son", "daughter"))
PLACEHOLDER_FRAGMENTS = ("unnamed", "unknown person")


def node_name(node: GraphNode) -> str:
    data = node.data or {}
    name = data.get("name") or data.get("first name") or ""
    return str(name).strip()


def is_placeholder_name(name: str) -> bool:
    lowered = (name or "").strip().lower()
    if not lowered or lowered in PLACEHOLDER_NAMES:
        return True
    return any(fragment in lowered for fragment in PLACEHOLDER_FRAGMENTS)


def filter_real_nodes(nodes: Sequence[GraphNode]) -> List[GraphNode]:
    """Drop placeholders and collapse same-name nodes to the most populated one."""
    by_name: Dict[str, GraphNode] = {}
    for node in nodes:
        name = node_name(node)
        if is_placeholder_name(name):
            logger.debug("Filtering out placeholder node %s (%r)", node.id, name)
            continue
        kept = by_name.get(name)
        if kept is None or len(node.data) > len(kept.data):
            if kept is not None:
                logger.debug("Discarding duplicate node %s for %r", kept.id, name)
            by_name[name] = node
        else:
            logger.debug("Discarding duplicate node %s for %r", node.id, name)
    return list(by_name.values())


def changed_fields(before: dict, after: dict) -> dict:
    """Field-level diff: keys present in after whose value is new or changed.

    A key the widget left out is not a change; clearing a field takes an
    explicit empty value.
    """
    missing = object()
    return {k: v for k, v in after.items() if before.get(k, missing) != v}


def diff_snapshots(original: Sequence[GraphNode], current: Sequence[GraphNode]) -> TreeDiff:
    """Classify every node as new, updated or deleted.

    New and updated nodes come from the filtered current snapshot. Deletions
    compare against every id still present in the raw current snapshot, so a
    node collapsed as a same-name duplicate is not mistaken for a removal.
    """
    original_by_id = {n.id: n for n in original}
    current_ids = {n.id for n in current}
    diff = TreeDiff()

    for node in filter_real_nodes(current):
        before = original_by_id.get(node.id)
        if before is None:
            if not is_placeholder_name(node_name(node)):
                diff.new_nodes.append(node)
        elif node.data != before.data:
            diff.updated_nodes.append(NodeUpdate(node=node, changes=changed_fields(before.data, node.data)))

    for node in original:
        if node.id in current_ids:
            continue
        if is_placeholder_name(node_name(node)):
            logger.debug("Not deleting placeholder node %s", node.id)
            continue
        diff.deleted_ids.append(node.id)

    logger.info("Snapshot diff: %d new, %d updated, %d deleted",
                len(diff.new_nodes), len(diff.updated_nodes), len(diff.deleted_ids))
    return diff
