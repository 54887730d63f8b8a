import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException
from sqlalchemy.orm import Session

from .db import get_db, init_db
from .models import Status
from . import schemas
from .store import SqlDocumentStore, RecordNotFound
from .tree_graph.reconcile import save_tree_changes
from .tree_graph.transform import transform_family_tree
from .tree_graph.validation import validate_snapshot

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="kintree", lifespan=lifespan)


def get_store(db: Session = Depends(get_db)) -> SqlDocumentStore:
    return SqlDocumentStore(db)


@app.get("/health")
def health():
    return {"ok": True}


# ── Persons ──

@app.get("/api/persons", response_model=list[schemas.PersonOut])
async def list_persons(status: Optional[Status] = None, store: SqlDocumentStore = Depends(get_store)):
    return await store.list_persons(status)


@app.post("/api/persons", response_model=schemas.PersonOut)
async def add_person(body: schemas.PersonCreate, store: SqlDocumentStore = Depends(get_store)):
    try:
        return await store.create_person(body)
    except ValueError as e:
        raise HTTPException(400, str(e))


@app.get("/api/persons/{person_id}", response_model=schemas.PersonOut)
async def get_person(person_id: str, store: SqlDocumentStore = Depends(get_store)):
    try:
        return await store.get_person(person_id)
    except RecordNotFound as e:
        raise HTTPException(404, str(e))


@app.delete("/api/persons/{person_id}")
async def delete_person(person_id: str, store: SqlDocumentStore = Depends(get_store)):
    try:
        await store.delete_person(person_id)
    except RecordNotFound as e:
        raise HTTPException(404, str(e))
    return {"ok": True}


# ── Families ──

@app.get("/api/families", response_model=list[schemas.FamilyOut])
async def list_families(status: Optional[Status] = None, store: SqlDocumentStore = Depends(get_store)):
    return await store.list_families(status)


@app.post("/api/families", response_model=schemas.FamilyOut)
async def add_family(body: schemas.FamilyCreate, store: SqlDocumentStore = Depends(get_store)):
    return await store.create_family(body)


# ── Relationships ──

@app.get("/api/relationships", response_model=list[schemas.RelationshipOut])
async def list_relationships(status: Optional[Status] = None, person_id: Optional[str] = None,
                             store: SqlDocumentStore = Depends(get_store)):
    return await store.list_relationships(status, person_id)


@app.post("/api/relationships", response_model=schemas.RelationshipOut)
async def add_rel(body: schemas.RelCreate, store: SqlDocumentStore = Depends(get_store)):
    try:
        return await store.create_relationship(body)
    except ValueError as e:
        raise HTTPException(400, str(e))


@app.delete("/api/relationships/{rel_id}")
async def delete_rel(rel_id: str, store: SqlDocumentStore = Depends(get_store)):
    try:
        await store.delete_relationship(rel_id)
    except RecordNotFound as e:
        raise HTTPException(404, str(e))
    return {"ok": True}


# ── Tree ──

@app.get("/api/tree", response_model=schemas.TransformResult)
async def get_tree(include_private: bool = False, start_date: Optional[str] = None,
                   end_date: Optional[str] = None, detect_cycles: bool = False,
                   store: SqlDocumentStore = Depends(get_store)):
    window = schemas.DateRange(start_date=start_date, end_date=end_date) if (start_date or end_date) else None
    options = schemas.TransformOptions(
        include_private=include_private, filter_by_date_range=window, detect_cycles=detect_cycles,
    )
    persons = await store.list_persons()
    families = await store.list_families()
    relationships = await store.list_relationships()
    return transform_family_tree(persons, families, relationships, options)


@app.post("/api/tree/save", response_model=schemas.ReconcileResult)
async def save_tree(body: schemas.TreeSaveRequest, store: SqlDocumentStore = Depends(get_store)):
    result = await save_tree_changes(store, body.current, body.original, user_id=body.user_id)
    if result.error_count:
        logger.warning("Tree save for %s finished with %d errors", body.user_id, result.error_count)
    return result


@app.post("/api/tree/validate", response_model=schemas.ValidationReport)
def validate_tree(nodes: list[schemas.GraphNode]):
    return validate_snapshot(nodes)
