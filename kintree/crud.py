"""Person, family and relationship persistence over a SQLAlchemy session."""
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .models import Person, Family, Relationship, Status
from .schemas import PersonCreate, PersonPatch, FamilyCreate, RelCreate

logger = logging.getLogger(__name__)


def _columns(data: dict) -> dict:
    """Map schema field names onto ORM attribute names."""
    if "metadata" in data:
        data["metadata_json"] = data.pop("metadata")
    return data


# ── Persons ──

def create_person(db: Session, body: PersonCreate) -> Person:
    data = _columns(body.model_dump(exclude_none=True))
    p = Person(**data)
    db.add(p); db.commit(); db.refresh(p)
    logger.info("Created person %s (%s)", p.id, p.name)
    return p


def get_person(db: Session, person_id: str) -> Person | None:
    return db.get(Person, person_id)


def list_people(db: Session, status: Status | None = None) -> list[Person]:
    q = db.query(Person)
    if status is not None:
        q = q.filter(Person.status == status)
    return q.order_by(Person.display_order.asc(), Person.name.asc()).all()


def update_person(db: Session, person_id: str, patch: PersonPatch) -> Person | None:
    p = db.get(Person, person_id)
    if p is None:
        return None
    for field, value in _columns(patch.changes()).items():
        setattr(p, field, value)
    db.commit(); db.refresh(p)
    return p


def delete_person(db: Session, person_id: str) -> bool:
    p = db.get(Person, person_id)
    if p is None:
        return False
    db.delete(p); db.commit()
    logger.info("Deleted person %s", person_id)
    return True


# ── Families ──

def create_family(db: Session, body: FamilyCreate) -> Family:
    f = Family(**_columns(body.model_dump(exclude_none=True)))
    db.add(f); db.commit(); db.refresh(f)
    return f


def list_families(db: Session, status: Status | None = None) -> list[Family]:
    q = db.query(Family)
    if status is not None:
        q = q.filter(Family.status == status)
    return q.order_by(Family.display_order.asc()).all()


# ── Relationships ──

def create_relationship(db: Session, body: RelCreate) -> Relationship:
    if body.person_a == body.person_b:
        raise ValueError("A relationship needs two different people")
    r = Relationship(**_columns(body.model_dump(exclude_none=True)))
    db.add(r); db.commit(); db.refresh(r)
    logger.info("Created %s relationship %s -> %s", r.type.value, r.person_a, r.person_b)
    return r


def list_relationships(db: Session, status: Status | None = None,
                       person_id: str | None = None) -> list[Relationship]:
    """List relationships, optionally only those touching person_id at either end."""
    q = db.query(Relationship)
    if status is not None:
        q = q.filter(Relationship.status == status)
    if person_id is not None:
        q = q.filter(or_(Relationship.person_a == person_id, Relationship.person_b == person_id))
    return q.order_by(Relationship.created_at.asc()).all()


def delete_relationship(db: Session, rel_id: str) -> bool:
    r = db.get(Relationship, rel_id)
    if r is None:
        return False
    db.delete(r); db.commit()
    return True
