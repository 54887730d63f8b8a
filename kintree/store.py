"""Document-store collaborator used by the tree engine.

The engine only needs create/read/update/delete-by-id and list-with-filter over
the persons, families and relationships collections. Every call is a
suspension point; callers await them one at a time so a failing item can be
isolated from the rest of a batch.
"""
from typing import Protocol
from sqlalchemy.orm import Session

from . import crud
from .models import Status
from .schemas import (
    PersonCreate, PersonOut, PersonPatch,
    FamilyCreate, FamilyOut,
    RelCreate, RelationshipOut,
)


class RecordNotFound(LookupError):
    """Raised for a by-id operation on a record that doesn't exist."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection} {record_id} not found")
        self.collection = collection
        self.record_id = record_id


class DocumentStore(Protocol):
    async def list_persons(self, status: Status | None = None) -> list[PersonOut]: ...
    async def get_person(self, person_id: str) -> PersonOut: ...
    async def create_person(self, body: PersonCreate) -> PersonOut: ...
    async def update_person(self, person_id: str, patch: PersonPatch) -> PersonOut: ...
    async def delete_person(self, person_id: str) -> None: ...

    async def list_families(self, status: Status | None = None) -> list[FamilyOut]: ...
    async def create_family(self, body: FamilyCreate) -> FamilyOut: ...

    async def list_relationships(self, status: Status | None = None,
                                 person_id: str | None = None) -> list[RelationshipOut]: ...
    async def create_relationship(self, body: RelCreate) -> RelationshipOut: ...
    async def delete_relationship(self, rel_id: str) -> None: ...


class SqlDocumentStore:
    """DocumentStore backed by a SQLAlchemy session.

    Statements run inline on the session; the async surface lets the engine
    treat this store like any remote one.
    """

    def __init__(self, db: Session):
        self.db = db

    def _rollback(self):
        # keep the session usable for the next item after a failed write
        self.db.rollback()

    # ── Persons ──

    async def list_persons(self, status=None):
        return [PersonOut.model_validate(p) for p in crud.list_people(self.db, status)]

    async def get_person(self, person_id):
        p = crud.get_person(self.db, person_id)
        if p is None:
            raise RecordNotFound("person", person_id)
        return PersonOut.model_validate(p)

    async def create_person(self, body):
        try:
            return PersonOut.model_validate(crud.create_person(self.db, body))
        except Exception:
            self._rollback()
            raise

    async def update_person(self, person_id, patch):
        try:
            p = crud.update_person(self.db, person_id, patch)
        except Exception:
            self._rollback()
            raise
        if p is None:
            raise RecordNotFound("person", person_id)
        return PersonOut.model_validate(p)

    async def delete_person(self, person_id):
        try:
            deleted = crud.delete_person(self.db, person_id)
        except Exception:
            self._rollback()
            raise
        if not deleted:
            raise RecordNotFound("person", person_id)

    # ── Families ──

    async def list_families(self, status=None):
        return [FamilyOut.model_validate(f) for f in crud.list_families(self.db, status)]

    async def create_family(self, body):
        try:
            return FamilyOut.model_validate(crud.create_family(self.db, body))
        except Exception:
            self._rollback()
            raise

    # ── Relationships ──

    async def list_relationships(self, status=None, person_id=None):
        return [RelationshipOut.model_validate(r)
                for r in crud.list_relationships(self.db, status, person_id)]

    async def create_relationship(self, body):
        try:
            return RelationshipOut.model_validate(crud.create_relationship(self.db, body))
        except Exception:
            self._rollback()
            raise

    async def delete_relationship(self, rel_id):
        try:
            deleted = crud.delete_relationship(self.db, rel_id)
        except Exception:
            self._rollback()
            raise
        if not deleted:
            raise RecordNotFound("relationship", rel_id)
