"""
Test configuration and fixtures

Environment variables are set before any application import so that the
settings module picks up a throwaway SQLite database and leaves Redis,
Kafka, Loki and OTLP disabled.
"""

import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="festival_booking_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'festival_booking_test.db')}"
for _name in ("REDIS_HOST", "KAFKA_BOOTSTRAP_SERVERS", "LOKI_URL", "OTLP_ENDPOINT"):
    os.environ[_name] = ""
os.environ["INVOICE_NUMBER_PREFIX"] = "FAC"

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from festival_booking.entities.festival import Editor, Festival  # noqa: E402
from festival_booking.entities.zone import Zone  # noqa: E402
from festival_booking.utils.database import Base, SessionLocal, db_session_context, engine  # noqa: E402

FESTIVAL_ID = "fes_test"
OTHER_FESTIVAL_ID = "fes_other"
EDITOR_ID = "edi_test"


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    """Session bound to the current context, the way routes bind theirs."""
    session = SessionLocal()
    db_session_context.set(session)
    yield session
    session.close()


@pytest.fixture
def festival(db) -> Festival:
    festival = Festival(
        id=FESTIVAL_ID,
        name="Festival du Jeu",
        location="Montpellier",
        start_date=date(2026, 3, 14),
        end_date=date(2026, 3, 15),
    )
    other = Festival(
        id=OTHER_FESTIVAL_ID,
        name="Autre Festival",
        location="Nimes",
        start_date=date(2026, 6, 1),
        end_date=date(2026, 6, 2),
    )
    editor = Editor(id=EDITOR_ID, name="Editions du Test")
    db.add_all([festival, other, editor])
    db.commit()
    return festival


@pytest.fixture
def make_zone(db, festival):
    def _make_zone(zone_id: str, total: int, price_per_table="100", price_per_area="25",
                   festival_id: str = FESTIVAL_ID, available: int | None = None) -> Zone:
        zone = Zone(
            id=zone_id,
            festival_id=festival_id,
            name=f"Zone {zone_id}",
            total_tables=total,
            available_tables=total if available is None else available,
            price_per_table=Decimal(price_per_table),
            price_per_area=Decimal(price_per_area),
        )
        db.add(zone)
        db.commit()
        return zone

    return _make_zone


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def available(db):
    """Read a zone's available tables as committed by any session."""
    def _available(zone_id: str) -> int:
        db.expire_all()
        return db.get(Zone, zone_id).available_tables

    return _available
