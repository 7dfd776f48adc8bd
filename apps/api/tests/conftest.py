"""
Test configuration and fixtures.

Provides:
- Per-test in-memory SQLite database (schema from the ORM metadata)
- Organizations, locations, admin and staff users with memberships
- JWT token minting for authenticated tests
- HTTPX AsyncClient with proper headers
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.deps import COOKIE_NAME, _build_session, get_db
from app.core.security import create_session_token
from app.db.base import Base
from app.db.enums import Role
from app.db.models import Location, Membership, Organization, User
from app.main import app
from app.schemas.auth import UserSession


# =============================================================================
# Database Fixtures
# =============================================================================

def _make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite does not emit BEGIN itself; take over so SAVEPOINT works
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh database per test; app code may commit freely."""
    engine = _make_engine()
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """Create a test organization."""
    org = Organization(
        id=uuid.uuid4(),
        name="Grace Community Church",
        slug=f"grace-{uuid.uuid4().hex[:8]}",
    )
    db.add(org)
    db.flush()
    return org


@pytest.fixture(scope="function")
def other_org(db: Session) -> Organization:
    """A second tenant for isolation tests."""
    org = Organization(
        id=uuid.uuid4(),
        name="Other Church",
        slug=f"other-{uuid.uuid4().hex[:8]}",
    )
    db.add(org)
    db.flush()
    return org


@pytest.fixture(scope="function")
def main_campus(db: Session, test_org: Organization) -> Location:
    location = Location(organization_id=test_org.id, name="Main Campus", slug="main")
    db.add(location)
    db.flush()
    return location


@pytest.fixture(scope="function")
def north_campus(db: Session, test_org: Organization) -> Location:
    location = Location(organization_id=test_org.id, name="North Campus", slug="north")
    db.add(location)
    db.flush()
    return location


def make_member(
    db: Session,
    org: Organization,
    role: Role,
    *,
    display_name: str,
    location: Location | None = None,
    can_see_all_locations: bool = False,
) -> User:
    """Create a user with an active membership in org."""
    user = User(
        id=uuid.uuid4(),
        email=f"{display_name.split()[0].lower()}-{uuid.uuid4().hex[:8]}@test.com",
        display_name=display_name,
        default_location_id=location.id if location else None,
        can_see_all_locations=can_see_all_locations,
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
    db.flush()
    return user


@pytest.fixture(scope="function")
def admin_user(db: Session, test_org: Organization, main_campus: Location) -> User:
    """Church admin who sees every campus."""
    return make_member(
        db, test_org, Role.ADMIN,
        display_name="Alice Admin",
        location=main_campus,
        can_see_all_locations=True,
    )


@pytest.fixture(scope="function")
def staff_user(db: Session, test_org: Organization, main_campus: Location) -> User:
    """Staff member restricted to Main Campus."""
    return make_member(db, test_org, Role.MEMBER, display_name="Sam Staff", location=main_campus)


@pytest.fixture(scope="function")
def other_staff_user(db: Session, test_org: Organization, main_campus: Location) -> User:
    return make_member(db, test_org, Role.MEMBER, display_name="Olivia Other", location=main_campus)


def session_for(db: Session, user: User, org: Organization) -> UserSession:
    """Resolve the same UserSession the request dependencies would build."""
    return _build_session(db, user, org.id)


@pytest.fixture(scope="function")
def admin_session(db: Session, admin_user: User, test_org: Organization) -> UserSession:
    return session_for(db, admin_user, test_org)


@pytest.fixture(scope="function")
def staff_session(db: Session, staff_user: User, test_org: Organization) -> UserSession:
    return session_for(db, staff_user, test_org)


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


def mint_auth(user: User, org: Organization, role: Role) -> TestAuth:
    token = create_session_token(
        user_id=user.id,
        org_id=org.id,
        role=role.value,
        token_version=user.token_version,
    )
    return TestAuth(user=user, org=org, token=token)


@pytest.fixture(scope="function")
def test_auth(db: Session, admin_user: User, test_org: Organization) -> TestAuth:
    """Create JWT token for the admin user."""
    db.commit()
    return mint_auth(admin_user, test_org, Role.ADMIN)


@pytest.fixture(scope="function")
def staff_auth(db: Session, staff_user: User, test_org: Organization) -> TestAuth:
    db.commit()
    return mint_auth(staff_user, test_org, Role.MEMBER)


# =============================================================================
# Client Fixtures
# =============================================================================

def _override_db(db: Session):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    _override_db(db)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Requested-With": "XMLHttpRequest"},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated AsyncClient (admin) with JWT cookie and CSRF header.
    """
    _override_db(db)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
        headers={"X-Requested-With": "XMLHttpRequest"},  # CSRF header
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def staff_client(
    db: Session,
    staff_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated AsyncClient for the location-restricted staff user."""
    _override_db(db)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={staff_auth.cookie_name: staff_auth.token},
        headers={"X-Requested-With": "XMLHttpRequest"},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def member_factory(db: Session, test_org: Organization):
    """Create extra members: member_factory(Role.MEMBER, "Name", location=..., org=...)."""
    def _make(role: Role, display_name: str, org: Organization | None = None, **kwargs) -> User:
        return make_member(db, org or test_org, role, display_name=display_name, **kwargs)

    return _make
