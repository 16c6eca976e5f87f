"""Database engine and session management.

Environment variables:
  PLACEMENT_DB_PATH — Local SQLite path (default: /tmp/placements.db)
"""
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from .config import DEFAULT_DB_PATH
from .models import Base

logger = logging.getLogger(__name__)


def get_db_path() -> Path:
    """Local SQLite file path."""
    return Path(os.getenv("PLACEMENT_DB_PATH", DEFAULT_DB_PATH))


def get_engine(db_path: Optional[Path] = None, echo: bool = False):
    """Create SQLAlchemy engine for a local SQLite file.

    db_path=":memory:" gives a throwaway in-memory database.
    """
    path = db_path or get_db_path()
    url = f"sqlite:///{path}"
    engine = create_engine(url, echo=echo)

    # Enable WAL mode and foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        if str(path) != ":memory:":
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_session_factory(engine=None) -> sessionmaker:
    """Create a session factory."""
    if engine is None:
        engine = get_engine()
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def get_session(engine=None) -> Generator[Session, None, None]:
    """Context manager for database sessions with auto-commit/rollback."""
    factory = get_session_factory(engine)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine=None) -> None:
    """Create all tables (for initial setup or testing)."""
    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database tables created.")
