"""Database connection and session management.

This module handles the database connection using SQLAlchemy. Every request
gets its own session; nothing is shared between requests except the engine.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from config import DATA_DIR, DATABASE_URL, DB_TIMEOUT_SECONDS
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

# Ensure data directory exists
DATA_DIR.mkdir(parents=True, exist_ok=True)


def build_engine(url: str = DATABASE_URL):
    """Create an engine for ``url``.

    SQLite connections may be used from FastAPI's worker threads and wait
    ``DB_TIMEOUT_SECONDS`` on a locked database before failing.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": DB_TIMEOUT_SECONDS}
    return create_engine(url, connect_args=connect_args)


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
