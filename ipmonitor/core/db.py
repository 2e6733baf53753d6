from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def create_sqlite_engine(path: str) -> Engine:
    """Build an engine for the SQLite file at ``path`` with WAL journaling enabled."""

    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
        future=True,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=5000")
        finally:
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


@contextmanager
def get_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session: Session = session_factory()
    try:
        yield session
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables if they do not yet exist."""

    import ipmonitor.models.db_models  # noqa: F401  (ensures models are registered)

    Base.metadata.create_all(bind=engine)
