"""SQLAlchemy engine and session configuration for the document store."""
import os
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .models import Base

logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./kintree.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def init_db(bind=None):
    """Create the person/family/relationship tables if they don't exist."""
    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ready at %s", target.url)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
