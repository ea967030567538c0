"""
Test configuration and fixtures.

Provides:
- A fresh SQLite database per test (file-backed so the request audit log
  can write through its own session)
- JWT cookie minting for staff endpoints
- Bearer API tokens for the public API
- HTTPX AsyncClient fixtures against the ASGI app
"""
import os
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncGenerator, Generator

# Must be set before the app (and its settings/limiter) is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["TESTING"] = "1"
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from podevender.main import app
from podevender.core.deps import COOKIE_NAME, get_db, get_session_factory
from podevender.core.security import create_session_token, generate_api_token, hash_api_token
from podevender.db.base import Base
from podevender.db.enums import Role
from podevender.db.models import Agenda, ApiToken, Appointment, Membership, Organization, User
from podevender.db.models.agendas import default_working_hours
from podevender.services.listing_cache import ListingCache


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Sessionmaker bound to a throwaway SQLite file with the full schema."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """Create a test organization."""
    org = Organization(
        id=uuid.uuid4(),
        name="Test Organization",
        slug=f"test-org-{uuid.uuid4().hex[:8]}",
    )
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def user_factory(db: Session):
    """Create users with a membership in the given org."""
    def _make(org: Organization, role: Role = Role.OWNER) -> User:
        user = User(
            id=uuid.uuid4(),
            email=f"test-{uuid.uuid4().hex[:8]}@test.com",
            display_name="Test User",
        )
        db.add(user)
        db.flush()
        db.add(
            Membership(
                id=uuid.uuid4(),
                user_id=user.id,
                organization_id=org.id,
                role=role.value,
            )
        )
        db.commit()
        return user
    return _make


@pytest.fixture(scope="function")
def test_user(user_factory, test_org: Organization) -> User:
    """Create a test user with owner membership in test_org."""
    return user_factory(test_org, Role.OWNER)


@pytest.fixture(scope="function")
def agenda_factory(db: Session):
    """Create agendas (Mon-Fri 09:00-18:00 UTC, 30 minute slots by default)."""
    def _make(org: Organization, user: User, **overrides) -> Agenda:
        values = dict(
            organization_id=org.id,
            user_id=user.id,
            name="Consultas",
            working_hours=default_working_hours(),
            slot_duration=30,
            breaks=[],
            timezone="UTC",
        )
        values.update(overrides)
        agenda = Agenda(**values)
        db.add(agenda)
        db.commit()
        return agenda
    return _make


@pytest.fixture(scope="function")
def test_agenda(agenda_factory, test_org: Organization, test_user: User) -> Agenda:
    return agenda_factory(test_org, test_user)


@pytest.fixture(scope="function")
def appointment_factory(db: Session):
    """Insert appointments directly, bypassing conflict checks."""
    def _make(
        org: Organization,
        user: User,
        start: datetime,
        end: datetime,
        agenda: Agenda | None = None,
        status: str = "scheduled",
        title: str = "Visita",
    ) -> Appointment:
        appt = Appointment(
            organization_id=org.id,
            user_id=user.id,
            agenda_id=agenda.id if agenda else None,
            title=title,
            start_time=start,
            end_time=end,
            status=status,
        )
        db.add(appt)
        db.commit()
        return appt
    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    org: Organization
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def test_auth(test_user: User, test_org: Organization) -> TestAuth:
    """Create JWT token for test user."""
    token = create_session_token(
        user_id=test_user.id,
        org_id=test_org.id,
        role=Role.OWNER.value,
        token_version=test_user.token_version,
    )
    return TestAuth(user=test_user, org=test_org, token=token)


@pytest.fixture(scope="function")
def api_token_factory(db: Session):
    """Insert an API token row and return the raw bearer value."""
    def _make(org: Organization, scopes: list[str], **overrides) -> str:
        raw = generate_api_token()
        values = dict(
            organization_id=org.id,
            name="Integração",
            token_hash=hash_api_token(raw),
            token_prefix=raw[:10],
            scopes=scopes,
        )
        values.update(overrides)
        db.add(ApiToken(**values))
        db.commit()
        return raw
    return _make


@pytest.fixture(scope="function")
def write_token(api_token_factory, test_org: Organization) -> str:
    return api_token_factory(test_org, ["write:appointments", "read:appointments"])


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def listing_cache() -> ListingCache:
    cache = ListingCache(ttl_seconds=30)
    app.state.listing_cache = cache
    return cache


def _override_dependencies(db: Session, session_factory: sessionmaker) -> None:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory


@pytest.fixture(scope="function")
async def client(
    db: Session,
    session_factory: sessionmaker,
    listing_cache: ListingCache,
) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient (public API, health)."""
    _override_dependencies(db, session_factory)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    session_factory: sessionmaker,
    listing_cache: ListingCache,
    test_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated AsyncClient with JWT cookie and CSRF header."""
    _override_dependencies(db, session_factory)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    ) as c:
        yield c

    app.dependency_overrides.clear()
