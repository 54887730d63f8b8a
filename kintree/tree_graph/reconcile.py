"""Persist a snapshot diff back to the document store.

Every storage call is independent and best-effort: a failing item is logged and
counted, and the pass carries on with the next one. There is no rollback. A
pass interrupted half way leaves storage consistent but incomplete, and the
next reload + diff picks up whatever is still missing.
"""
from __future__ import annotations

import itertools
import logging
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from ..models import RelType, Status
from ..schemas import GraphNode, NodeRels, ReconcileResult, RelCreate, RelationshipOut, TreeDiff
from ..store import DocumentStore, RecordNotFound
from .differ import diff_snapshots, filter_real_nodes
from .projector import patch_from_changes, person_create_from_node
from .relationships import CHILD_TYPES, PARENT_TYPES, SPOUSE_TYPES

logger = logging.getLogger(__name__)


class EdgeKey(NamedTuple):
    person_a: str
    person_b: str
    type: RelType


def _name_key(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def existing_edge_keys(relationships: Iterable[RelationshipOut]) -> Set[EdgeKey]:
    """Every direction/type permutation under which an existing edge should be recognised."""
    keys: Set[EdgeKey] = set()
    for rel in relationships:
        types = {rel.type}
        if rel.type in PARENT_TYPES or rel.type in CHILD_TYPES:
            types |= {RelType.PARENT, RelType.CHILD}
        if rel.type in SPOUSE_TYPES:
            types |= SPOUSE_TYPES
        for t in types:
            keys.add(EdgeKey(rel.person_a, rel.person_b, t))
            keys.add(EdgeKey(rel.person_b, rel.person_a, t))
    return keys


def plan_relationship_edges(
    current: Sequence[GraphNode],
    original: Sequence[GraphNode],
    existing: Set[EdgeKey],
    aliases: Optional[Dict[str, str]] = None,
) -> List[EdgeKey]:
    """New edges implied by the current snapshot, in creation order.

    Parent/child edges are always keyed (parent, child, parent). Spouses are
    inferred for every pair of real parents sharing a child unless a
    spouse/married edge already exists or is queued in either direction, or
    the two were already spouses in the original snapshot.
    """
    aliases = aliases or {}
    real = filter_real_nodes(current)
    people = {n.id for n in real}
    before = {n.id: n for n in original}
    pending: Dict[EdgeKey, None] = {}

    def resolve(person_id: str) -> str:
        return aliases.get(person_id, person_id)

    def known(key: EdgeKey) -> bool:
        return key in existing or key in pending

    def has_spouse_edge(a: str, b: str) -> bool:
        return any(known(EdgeKey(x, y, t)) for x, y in ((a, b), (b, a)) for t in SPOUSE_TYPES)

    def were_spouses(a: str, b: str) -> bool:
        return ((a in before and b in before[a].rels.spouses)
                or (b in before and a in before[b].rels.spouses))

    def queue(a: str, b: str, rel_type: RelType):
        key = EdgeKey(resolve(a), resolve(b), rel_type)
        if key.person_a == key.person_b or known(key):
            return
        if rel_type in SPOUSE_TYPES and has_spouse_edge(key.person_a, key.person_b):
            return
        pending[key] = None

    for node in real:
        prior = before[node.id].rels if node.id in before else NodeRels()
        for parent_id in node.rels.parents:
            if parent_id in people and parent_id not in prior.parents:
                queue(parent_id, node.id, RelType.PARENT)
        for child_id in node.rels.children:
            if child_id in people and child_id not in prior.children:
                queue(node.id, child_id, RelType.PARENT)
        for spouse_id in node.rels.spouses:
            if spouse_id in people and spouse_id not in prior.spouses:
                queue(node.id, spouse_id, RelType.SPOUSE)

    for node in real:
        parents = list(dict.fromkeys(p for p in node.rels.parents if p in people))
        if len(parents) < 2:
            continue
        for p1, p2 in itertools.combinations(parents, 2):
            if were_spouses(p1, p2):
                continue
            logger.debug("Inferring spouses %s <-> %s from shared child %s", p1, p2, node.id)
            queue(p1, p2, RelType.SPOUSE)

    return list(pending)


async def _save_persons(store: DocumentStore, diff: TreeDiff, user_id: str,
                        result: ReconcileResult) -> Tuple[Dict[str, str], Set[str]]:
    """Create, update and delete persons.

    Returns node id -> existing id for skipped duplicates, and the node ids
    whose creation failed.
    """
    aliases: Dict[str, str] = {}
    failed: Set[str] = set()

    existing_names: Optional[Dict[str, str]] = None
    if diff.new_nodes:
        try:
            existing_names = {_name_key(p.name): p.id
                              for p in await store.list_persons(status=Status.ACTIVE)}
        except Exception as e:
            logger.exception("Could not load existing persons, skipping person creation")
            result.errors.append(f"Could not load existing persons: {e}")
            failed.update(n.id for n in diff.new_nodes)

    if existing_names is not None:
        for node in diff.new_nodes:
            try:
                body = person_create_from_node(node, user_id)
                key = _name_key(body.name)
                if key in existing_names:
                    logger.info("Skipping duplicate person %r (%s)", body.name, node.id)
                    aliases[node.id] = existing_names[key]
                    result.skipped += 1
                    continue
                created = await store.create_person(body)
                existing_names[key] = created.id
                result.persons_created += 1
            except Exception as e:
                logger.warning("Error saving new person %s: %s", node.id, e)
                failed.add(node.id)
                result.errors.append(f"Could not create person {node.id}: {e}")

    for update in diff.updated_nodes:
        person_id = update.node.id
        try:
            patch = patch_from_changes(update.changes, user_id)
            if patch is None:
                result.skipped += 1
                continue
            await store.update_person(person_id, patch)
            result.persons_updated += 1
        except Exception as e:
            logger.warning("Error updating person %s: %s", person_id, e)
            result.errors.append(f"Could not update person {person_id}: {e}")

    for person_id in diff.deleted_ids:
        await _delete_person(store, person_id, result)

    return aliases, failed


async def _delete_person(store: DocumentStore, person_id: str, result: ReconcileResult):
    """Delete every active relationship touching person_id, then the person."""
    try:
        rels = await store.list_relationships(status=Status.ACTIVE, person_id=person_id)
    except Exception as e:
        logger.warning("Could not list relationships of %s: %s", person_id, e)
        result.errors.append(f"Could not list relationships of person {person_id}: {e}")
        rels = []

    for rel in rels:
        try:
            await store.delete_relationship(rel.id)
            result.relationships_deleted += 1
        except RecordNotFound:
            result.skipped += 1
        except Exception as e:
            logger.warning("Error deleting relationship %s: %s", rel.id, e)
            result.errors.append(f"Could not delete relationship {rel.id}: {e}")

    try:
        await store.delete_person(person_id)
        result.persons_deleted += 1
        logger.info("Deleted person %s and %d relationships", person_id, len(rels))
    except RecordNotFound:
        logger.info("Person %s already deleted", person_id)
        result.skipped += 1
    except Exception as e:
        logger.warning("Error deleting person %s: %s", person_id, e)
        result.errors.append(f"Could not delete person {person_id}: {e}")


async def _save_relationships(store: DocumentStore, current: Sequence[GraphNode],
                              original: Sequence[GraphNode], user_id: str,
                              aliases: Dict[str, str], failed: Set[str], result: ReconcileResult):
    try:
        existing = existing_edge_keys(await store.list_relationships(status=Status.ACTIVE))
    except Exception as e:
        logger.exception("Could not load existing relationships, skipping relationship save")
        result.errors.append(f"Could not load existing relationships: {e}")
        return

    for key in plan_relationship_edges(current, original, existing, aliases):
        if key.person_a in failed or key.person_b in failed:
            logger.info("Skipping %s relationship %s -> %s, person was not created",
                        key.type.value, key.person_a, key.person_b)
            result.skipped += 1
            continue
        body = RelCreate(
            person_a=key.person_a,
            person_b=key.person_b,
            type=key.type,
            is_bidirectional=key.type in SPOUSE_TYPES,
            status=Status.ACTIVE,
            created_by=user_id,
        )
        try:
            await store.create_relationship(body)
            result.relationships_created += 1
        except Exception as e:
            logger.warning("Error saving %s relationship %s -> %s: %s",
                           key.type.value, key.person_a, key.person_b, e)
            result.errors.append(
                f"Could not create {key.type.value} relationship {key.person_a} -> {key.person_b}: {e}")


async def reconcile(store: DocumentStore, diff: TreeDiff, current: Sequence[GraphNode],
                    original: Sequence[GraphNode], *, user_id: str) -> ReconcileResult:
    """Apply diff, then persist the new edges of current relative to original.

    The result is a tally, not a verdict: a non-zero error_count means the
    pass was only partially applied.
    """
    result = ReconcileResult()
    aliases, failed = await _save_persons(store, diff, user_id, result)
    await _save_relationships(store, current, original, user_id, aliases, failed, result)
    logger.info("Reconciled tree for %s: %d saved, %d errors, %d skipped",
                user_id, result.saved_count, result.error_count, result.skipped)
    return result


async def save_tree_changes(store: DocumentStore, current: Sequence[GraphNode],
                            original: Sequence[GraphNode], *, user_id: str) -> ReconcileResult:
    return await reconcile(store, diff_snapshots(original, current), current, original, user_id=user_id)
