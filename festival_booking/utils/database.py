from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from festival_booking.utils.config import settings

_connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    _connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Register every mapped table on Base.metadata
import festival_booking.entities.festival  # noqa: E402,F401
import festival_booking.entities.zone  # noqa: E402,F401
import festival_booking.entities.reservation  # noqa: E402,F401
import festival_booking.entities.invoice  # noqa: E402,F401

async def get_db() -> Session :
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_session_context : ContextVar[Session] = ContextVar("db_session_context")


@contextmanager
def unit_of_work() -> Iterator[Session]:
    """Run a block of repository calls as one transaction on the current session.

    Commits when the block exits normally and rolls back on any exception,
    so stock changes and row writes are applied together or not at all.
    """
    db = db_session_context.get()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
