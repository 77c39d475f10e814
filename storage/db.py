"""
Database
========
Engine, session factory, and the transaction scope used by the store.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker

from config import Config
from storage.models import Base

logger = logging.getLogger(__name__)

_ENGINE: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _configure_sqlite_connection(dbapi_connection, connection_record):
    # SQLite leaves foreign keys off per connection; cascades depend on them
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """Build an engine for a database URL"""
    parsed = make_url(url)
    is_sqlite = parsed.drivername.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(parsed, pool_pre_ping=True, future=True, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _configure_sqlite_connection)
    logger.info("Database target: %s", parsed.render_as_string(hide_password=True))
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create any missing tables"""
    Base.metadata.create_all(engine)


def get_engine() -> Engine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = create_db_engine(Config.DATABASE_URL)
    return _ENGINE


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = create_session_factory(get_engine())
    return _SessionLocal


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """One unit of work: commit on success, roll back and re-raise on error"""
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.error("Database transaction rolled back: %s", exc)
        raise
    finally:
        session.close()
