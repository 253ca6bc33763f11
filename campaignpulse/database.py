"""
CampaignPulse Database Configuration

SQLAlchemy engine, session factory and declarative base.

Configuration (environment):
    DATABASE_URL     SQLAlchemy URL; defaults to campaignpulse.db next to
                     this package. "sqlite://" gives a throwaway in-memory DB.
    SQLALCHEMY_ECHO  "true" to log every SQL statement.

SQLite connections get foreign keys switched on (the ON DELETE CASCADE
clauses in models.py depend on it) and, for file databases, WAL journaling.
"""

import logging
import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

logger = logging.getLogger("campaignpulse.database")

_DEFAULT_DB_PATH = Path(__file__).parent / "campaignpulse.db"
DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{_DEFAULT_DB_PATH}")

_IS_SQLITE = DATABASE_URL.startswith("sqlite")
_IS_SQLITE_MEMORY = _IS_SQLITE and (DATABASE_URL in ("sqlite://", "sqlite:///:memory:"))

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if _IS_SQLITE else {},
    pool_pre_ping=True,
    echo=os.environ.get("SQLALCHEMY_ECHO", "false").lower() == "true",
)


@event.listens_for(engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    if not _IS_SQLITE:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    if not _IS_SQLITE_MEMORY:
        cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for every CampaignPulse table."""
    pass


def get_db():
    """
    FastAPI dependency: one session per request, closed afterwards.
    Routers and crud functions commit explicitly.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create any missing tables. Called from the app lifespan and seed_data.py."""
    from . import models  # noqa: F401  registers the mapped tables
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database ready ({engine.url.render_as_string(hide_password=True)})")
