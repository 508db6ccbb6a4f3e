"""
Database engine and session management.

Exposes the declarative ``Base`` shared by every model, the ``SessionLocal``
factory used by the background sweep, and the ``get_db`` FastAPI dependency
that yields one session per request.
"""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import get_settings
from app.utils.exceptions import StorageError

settings = get_settings()
logger = logging.getLogger(__name__)

_connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a session bound to the request and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session, action: str) -> None:
    """Commit *db*; on failure roll back and raise ``StorageError``.

    *action* only feeds the log line, clients get the generic message.
    """
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure while %s", action)
        raise StorageError() from exc


def init_db() -> None:
    """Create all tables from the model metadata (development / tests only).

    Production schemas are managed with Alembic.
    """
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
