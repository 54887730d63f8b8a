"""Per-person adjacency index built from relationships, supplemented by families."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..models import RelType, Status
from ..schemas import PersonOut, FamilyOut, RelationshipOut
from .relationships import AdjacencyEntry, Bucket, apply_relationship

logger = logging.getLogger(__name__)


@dataclass
class AdjacencyIndex:
    entries: Dict[str, AdjacencyEntry] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def __contains__(self, person_id: str) -> bool:
        return person_id in self.entries

    def __getitem__(self, person_id: str) -> AdjacencyEntry:
        return self.entries[person_id]

    def chart_rels(self, person_id: str, keep: Optional[set] = None) -> Dict[str, List[str]]:
        """Parents/spouses/children for person_id, limited to ids in keep when given."""
        entry = self.entries.get(person_id)
        if entry is None:
            return {"parents": [], "spouses": [], "children": []}
        rels = entry.chart_rels()
        if keep is not None:
            rels = {k: [i for i in ids if i in keep] for k, ids in rels.items()}
        return rels


def family_partners(family: FamilyOut) -> List[str]:
    """husband, wife, then extra partners, de-duplicated in that order."""
    partners: List[str] = []
    for pid in [family.husband, family.wife, *(family.partners or [])]:
        if pid and pid not in partners:
            partners.append(pid)
    return partners


def _supplement_from_family(index: AdjacencyIndex, family: FamilyOut) -> None:
    partners = [p for p in family_partners(family) if p in index]

    for p1, p2 in itertools.combinations(partners, 2):
        if not (index[p1].has(Bucket.SPOUSES, p2) or index[p2].has(Bucket.SPOUSES, p1)):
            apply_relationship(index.entries, p1, p2, RelType.SPOUSE, True)

    for child_id in family.children or []:
        if child_id not in index:
            continue
        for parent_id in partners:
            if not index[child_id].has(Bucket.PARENTS, parent_id):
                apply_relationship(index.entries, parent_id, child_id, RelType.PARENT, False)


def build_adjacency_index(
    persons: Iterable[PersonOut],
    families: Iterable[FamilyOut],
    relationships: Iterable[RelationshipOut],
) -> AdjacencyIndex:
    """Build a fresh adjacency index over every person.

    Active relationships are authoritative and applied first. Active families
    only fill gaps: they never duplicate or replace an edge a relationship
    already established. Dangling references are reported in warnings and
    skipped.
    """
    index = AdjacencyIndex()
    for p in persons:
        index.entries[p.id] = AdjacencyEntry()

    for rel in relationships:
        if rel.status != Status.ACTIVE:
            continue
        if rel.person_a not in index or rel.person_b not in index:
            msg = (f"Relationship {rel.id} references non-existent persons: "
                   f"{rel.person_a} -> {rel.person_b}")
            logger.warning(msg)
            index.warnings.append(msg)
            continue
        if not apply_relationship(index.entries, rel.person_a, rel.person_b,
                                  rel.type, rel.is_bidirectional):
            index.warnings.append(f"Relationship {rel.id} has unknown type {rel.type!r}")

    for family in families:
        if family.status != Status.ACTIVE:
            continue
        _supplement_from_family(index, family)

    return index
