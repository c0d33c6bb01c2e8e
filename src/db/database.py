"""Database engine and session configuration for save slots."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.config import settings


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}  # required for SQLite
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db() -> None:
    """Create the save-slot tables if they do not exist yet."""
    from src.db.models import Base

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Yield a database session and ensure it is closed after use.

    Usage::

        with session_scope() as db:
            SaveService(db, bus).save(1, state, logs)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
