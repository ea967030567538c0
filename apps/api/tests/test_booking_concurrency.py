"""
Concurrent bookings against PostgreSQL.

SQLite serializes writers, so these run only when TEST_POSTGRES_URL points
at a disposable PostgreSQL database.
"""

import os
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from podevender.core.exceptions import ConflictError
from podevender.db.base import Base
from podevender.db.enums import ApiScope
from podevender.db.models import Agenda, Appointment, Organization, User
from podevender.schemas.auth import TokenContext
from podevender.services import public_booking_service

POSTGRES_URL = os.environ.get("TEST_POSTGRES_URL")

pytestmark = [
    pytest.mark.postgres,
    pytest.mark.skipif(not POSTGRES_URL, reason="TEST_POSTGRES_URL not set"),
]


@pytest.fixture(scope="function")
def pg_factory():
    engine = create_engine(POSTGRES_URL)
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(engine)
    engine.dispose()


def test_simultaneous_overlapping_bookings(pg_factory):
    with pg_factory() as db:
        org = Organization(name="Concorrência", slug=f"conc-{uuid.uuid4().hex[:8]}")
        user = User(email=f"vendas-{uuid.uuid4().hex[:8]}@test.com", display_name="Vendas")
        db.add_all([org, user])
        db.flush()
        agenda = Agenda(organization_id=org.id, user_id=user.id, name="Consultas", timezone="UTC")
        db.add(agenda)
        db.commit()
        org_id, agenda_id = org.id, agenda.id

    token = TokenContext(
        token_id=uuid.uuid4(),
        organization_id=org_id,
        scopes=[ApiScope.WRITE_APPOINTMENTS.value],
    )
    barrier = threading.Barrier(2)

    def book(start: str, end: str) -> str:
        with pg_factory() as db:
            barrier.wait()
            try:
                public_booking_service.book_appointment(
                    db,
                    token,
                    {
                        "agenda_id": str(agenda_id),
                        "start_time": start,
                        "end_time": end,
                        "client_phone": "+55 11 98888-0000",
                    },
                )
                return "booked"
            except ConflictError:
                db.rollback()
                return "conflict"

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [
            pool.submit(book, "2026-03-02T09:00:00Z", "2026-03-02T10:00:00Z"),
            pool.submit(book, "2026-03-02T09:30:00Z", "2026-03-02T10:30:00Z"),
        ]
        outcomes = sorted(f.result() for f in futures)

    assert outcomes == ["booked", "conflict"]
    with pg_factory() as db:
        assert db.query(Appointment).filter(Appointment.agenda_id == agenda_id).count() == 1
