"""Forward pipeline: stored records -> chart snapshot."""
from __future__ import annotations

import logging
import time
from datetime import date
from typing import List, Optional, Sequence

from ..models import Status
from ..schemas import (
    DateRange, FamilyOut, GraphNode, NodeRels, PersonOut, RelationshipOut,
    TransformMetadata, TransformOptions, TransformResult,
)
from .index import AdjacencyIndex, build_adjacency_index
from .projector import parse_date, project_person
from .validation import find_parent_cycles

logger = logging.getLogger(__name__)


def _bound(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return parse_date(value)


def _in_range(person: PersonOut, start: Optional[date], end: Optional[date],
              warnings: List[str]) -> bool:
    if not person.birth_date:
        return True
    try:
        born = parse_date(person.birth_date)
    except ValueError:
        warnings.append(f"Person {person.id} has unparseable birth date {person.birth_date!r}")
        return True
    if start and born < start:
        return False
    if end and born > end:
        return False
    return True


def apply_filters(persons: Sequence[PersonOut], options: TransformOptions,
                  warnings: Optional[List[str]] = None) -> List[PersonOut]:
    """Visibility filter, then the inclusive birth-date window."""
    warnings = warnings if warnings is not None else []
    filtered = list(persons)
    if not options.include_private:
        filtered = [p for p in filtered if p.is_public and p.status == Status.ACTIVE]

    window: Optional[DateRange] = options.filter_by_date_range
    if window and (window.start_date or window.end_date):
        start, end = _bound(window.start_date), _bound(window.end_date)
        filtered = [p for p in filtered if _in_range(p, start, end, warnings)]
    return filtered


def build_nodes(persons: Sequence[PersonOut], index: AdjacencyIndex) -> List[GraphNode]:
    shown = {p.id for p in persons}
    return [
        GraphNode(id=p.id, data=project_person(p), rels=NodeRels(**index.chart_rels(p.id, keep=shown)))
        for p in persons
    ]


def transform_family_tree(
    persons: Sequence[PersonOut],
    families: Sequence[FamilyOut],
    relationships: Sequence[RelationshipOut],
    options: Optional[TransformOptions] = None,
) -> TransformResult:
    """Convert stored records into chart nodes.

    Never raises: a failure anywhere yields an empty node list with the error
    in metadata.errors, which callers must treat as a failure rather than an
    empty tree.
    """
    options = options or TransformOptions()
    started = time.perf_counter()
    warnings: List[str] = []

    try:
        # index over everyone so edges to hidden persons resolve cleanly
        index = build_adjacency_index(persons, families, relationships)
        warnings.extend(index.warnings)

        filtered = apply_filters(persons, options, warnings)
        nodes = build_nodes(filtered, index)

        if options.detect_cycles:
            warnings.extend(find_parent_cycles(index))

        metadata = TransformMetadata(
            person_count=len(filtered),
            family_count=len(families),
            relationship_count=len(relationships),
            transformation_time_ms=(time.perf_counter() - started) * 1000,
            warnings=warnings,
        )
        logger.info("Transformed %d of %d persons into chart nodes", len(filtered), len(persons))
        return TransformResult(nodes=nodes, metadata=metadata)
    except Exception as e:
        logger.exception("Family tree transformation failed")
        return TransformResult(
            nodes=[],
            metadata=TransformMetadata(
                transformation_time_ms=(time.perf_counter() - started) * 1000,
                warnings=warnings,
                errors=[f"Transformation error: {e}"],
            ),
        )
