"""Relationship type resolution into per-person adjacency buckets.

The chart widget only understands parents, spouses and children. Every stored
relationship code is folded into one of ten buckets so the remaining kinship
information is still available for validation.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from ..models import RelType

logger = logging.getLogger(__name__)


class Bucket(str, enum.Enum):
    PARENTS = "parents"
    SPOUSES = "spouses"
    CHILDREN = "children"
    SIBLINGS = "siblings"
    GRANDPARENTS = "grandparents"
    GRANDCHILDREN = "grandchildren"
    AUNTS_UNCLES = "aunts_uncles"
    NIECES_NEPHEWS = "nieces_nephews"
    COUSINS = "cousins"
    IN_LAWS = "in_laws"


CHART_BUCKETS = (Bucket.PARENTS, Bucket.SPOUSES, Bucket.CHILDREN)


@dataclass
class AdjacencyEntry:
    parents: List[str] = field(default_factory=list)
    spouses: List[str] = field(default_factory=list)
    children: List[str] = field(default_factory=list)
    siblings: List[str] = field(default_factory=list)
    grandparents: List[str] = field(default_factory=list)
    grandchildren: List[str] = field(default_factory=list)
    aunts_uncles: List[str] = field(default_factory=list)
    nieces_nephews: List[str] = field(default_factory=list)
    cousins: List[str] = field(default_factory=list)
    in_laws: List[str] = field(default_factory=list)

    def bucket(self, bucket: Bucket) -> List[str]:
        return getattr(self, bucket.value)

    def has(self, bucket: Bucket, person_id: str) -> bool:
        return person_id in self.bucket(bucket)

    def add(self, bucket: Bucket, person_id: str) -> bool:
        """Append person_id to bucket unless already present. Returns True if added."""
        ids = self.bucket(bucket)
        if person_id in ids:
            return False
        ids.append(person_id)
        return True

    def chart_rels(self) -> Dict[str, List[str]]:
        return {b.value: list(self.bucket(b)) for b in CHART_BUCKETS}


# Directional codes: (holder, related, bucket) with "a"/"b" naming the endpoints.
# parent(A, B) means A is the parent of B.
_PARENT_LIKE = (("b", "a", Bucket.PARENTS), ("a", "b", Bucket.CHILDREN))
_CHILD_LIKE = (("a", "b", Bucket.PARENTS), ("b", "a", Bucket.CHILDREN))

DIRECTIONAL_RULES: Dict[RelType, Tuple[Tuple[str, str, Bucket], ...]] = {
    RelType.PARENT: _PARENT_LIKE,
    RelType.GUARDIAN: _PARENT_LIKE,
    RelType.ADOPTIVE_PARENT: _PARENT_LIKE,
    RelType.STEP_PARENT: _PARENT_LIKE,
    RelType.FOSTER_PARENT: _PARENT_LIKE,
    RelType.CHILD: _CHILD_LIKE,
    RelType.WARD: _CHILD_LIKE,
    RelType.ADOPTED_CHILD: _CHILD_LIKE,
    RelType.STEP_CHILD: _CHILD_LIKE,
    RelType.FOSTER_CHILD: _CHILD_LIKE,
    RelType.GRANDPARENT: (("b", "a", Bucket.GRANDPARENTS), ("a", "b", Bucket.GRANDCHILDREN)),
    RelType.GRANDCHILD: (("a", "b", Bucket.GRANDPARENTS), ("b", "a", Bucket.GRANDCHILDREN)),
    RelType.AUNT_UNCLE: (("b", "a", Bucket.AUNTS_UNCLES), ("a", "b", Bucket.NIECES_NEPHEWS)),
    RelType.NIECE_NEPHEW: (("a", "b", Bucket.AUNTS_UNCLES), ("b", "a", Bucket.NIECES_NEPHEWS)),
    # godparent/godchild share the extended-family catch-all bucket
    RelType.GODPARENT: (("a", "b", Bucket.IN_LAWS),),
    RelType.GODCHILD: (("b", "a", Bucket.IN_LAWS),),
}

# Symmetric codes: A always gets B; B gets A only when the edge is bidirectional.
SYMMETRIC_RULES: Dict[RelType, Bucket] = {
    RelType.SPOUSE: Bucket.SPOUSES,
    RelType.MARRIED: Bucket.SPOUSES,
    RelType.SIBLING: Bucket.SIBLINGS,
    RelType.COUSIN: Bucket.COUSINS,
    RelType.IN_LAW: Bucket.IN_LAWS,
}

PARENT_TYPES = frozenset(t for t, rule in DIRECTIONAL_RULES.items() if rule is _PARENT_LIKE)
CHILD_TYPES = frozenset(t for t, rule in DIRECTIONAL_RULES.items() if rule is _CHILD_LIKE)
SPOUSE_TYPES = frozenset((RelType.SPOUSE, RelType.MARRIED))


def parse_rel_type(value: Union[RelType, str]) -> RelType | None:
    if isinstance(value, RelType):
        return value
    try:
        return RelType(str(value).strip().lower())
    except ValueError:
        return None


def _entry(entries: Dict[str, AdjacencyEntry], person_id: str) -> AdjacencyEntry:
    entry = entries.get(person_id)
    if entry is None:
        entry = entries[person_id] = AdjacencyEntry()
    return entry


def apply_relationship(
    entries: Dict[str, AdjacencyEntry],
    person_a: str,
    person_b: str,
    rel_type: Union[RelType, str],
    is_bidirectional: bool,
) -> bool:
    """Write one typed edge into the adjacency entries of both endpoints.

    Returns False (after logging) for an unrecognised type code. Applying the
    same edge twice leaves the entries unchanged.
    """
    rt = parse_rel_type(rel_type)
    if rt is None:
        logger.warning("Unknown relationship type %r between %s and %s, skipping",
                       rel_type, person_a, person_b)
        return False

    ends = {"a": person_a, "b": person_b}
    if rt in SYMMETRIC_RULES:
        bucket = SYMMETRIC_RULES[rt]
        _entry(entries, person_a).add(bucket, person_b)
        if is_bidirectional:
            _entry(entries, person_b).add(bucket, person_a)
        return True

    for holder, related, bucket in DIRECTIONAL_RULES[rt]:
        _entry(entries, ends[holder]).add(bucket, ends[related])
    return True
