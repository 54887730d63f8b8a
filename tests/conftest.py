"""Shared fixtures for the kintree test suite."""
import os

# Set env vars BEFORE any kintree imports
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kintree import crud
from kintree.db import get_db, init_db
from kintree.models import Gender
from kintree.schemas import GraphNode, NodeRels, PersonCreate, RelCreate
from kintree.store import SqlDocumentStore


# ── Database fixtures ──

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return SqlDocumentStore(db_session)


# ── Person fixtures ──

@pytest.fixture
def person_dad(db_session):
    return crud.create_person(db_session, PersonCreate(
        id="dad", name="John Smith", first_name="John", last_name="Smith",
        gender=Gender.M, is_public=True, birth_date="1950-03-01"))


@pytest.fixture
def person_mom(db_session):
    return crud.create_person(db_session, PersonCreate(
        id="mom", name="Mary Smith", first_name="Mary", last_name="Smith",
        gender=Gender.F, is_public=True, birth_date="1952-07-15"))


@pytest.fixture
def person_child(db_session):
    return crud.create_person(db_session, PersonCreate(
        id="kid", name="Alex Smith", gender=Gender.O, is_public=True, birth_date="1980-01-01"))


@pytest.fixture
def family_graph(db_session, person_dad, person_mom, person_child):
    """dad -> kid, mom -> kid, dad <-> mom."""
    crud.create_relationship(db_session, RelCreate(person_a="dad", person_b="kid", type="parent"))
    crud.create_relationship(db_session, RelCreate(person_a="mom", person_b="kid", type="parent"))
    crud.create_relationship(db_session, RelCreate(
        person_a="dad", person_b="mom", type="spouse", is_bidirectional=True))
    return {"dad": person_dad, "mom": person_mom, "child": person_child}


# ── Snapshot helpers ──

def node(node_id, name=None, parents=(), spouses=(), children=(), **data):
    """GraphNode with the given name and chart rels."""
    if name is not None:
        data["name"] = name
    return GraphNode(id=node_id, data=data,
                     rels=NodeRels(parents=list(parents), spouses=list(spouses), children=list(children)))


# ── FastAPI app fixtures ──

@pytest.fixture
def client(db_session):
    """TestClient whose get_db yields the test session."""
    from kintree.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
