"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created and dropped per test
- Organization/user fixtures and JWT token minting
- HTTPX AsyncClient with session cookie and CSRF header
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Must be set before the app (and its settings/engine/limiter) is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "dev"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from aidtrack.core.config import settings
from aidtrack.core.deps import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE, get_db
from aidtrack.core.security import create_session_token
from aidtrack.db.base import Base
from aidtrack.db.enums import Role
from aidtrack.db.models import Article, Category, Family, Organization, User
from aidtrack.db.session import SessionLocal, engine
from aidtrack.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test.

    App code commits freely; isolation comes from dropping every table
    afterwards (the in-memory database lives on a single shared connection).
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Point the local storage backend at a per-test directory."""
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path / "documents"))
    monkeypatch.setattr(settings, "ANTIVIRUS_SCAN_ENABLED", False)
    return tmp_path / "documents"


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    """Create a test organization."""
    org = Organization(
        id=uuid.uuid4(),
        name="Test Association",
        slug=f"test-org-{uuid.uuid4().hex[:8]}",
    )
    db.add(org)
    db.commit()
    return org


def _make_user(db: Session, org: Organization, role: Role, name: str) -> User:
    user = User(
        id=uuid.uuid4(),
        organization_id=org.id,
        name=name,
        email=f"{role.value}-{uuid.uuid4().hex[:8]}@test.org",
        role=role.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def test_user(db: Session, test_org: Organization) -> User:
    """Admin user of test_org."""
    return _make_user(db, test_org, Role.ADMIN, "Test Admin")


@pytest.fixture(scope="function")
def volunteer_user(db: Session, test_org: Organization) -> User:
    return _make_user(db, test_org, Role.VOLUNTEER, "Test Volunteer")


@pytest.fixture(scope="function")
def other_org(db: Session) -> Organization:
    org = Organization(id=uuid.uuid4(), name="Other Association", slug=f"other-{uuid.uuid4().hex[:8]}")
    db.add(org)
    db.commit()
    return org


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def test_family(db: Session, test_org: Organization) -> Family:
    family = Family(
        organization_id=test_org.id,
        responsible_name="Martin Dupont",
        phone="0600000000",
        address="12 rue des Lilas",
        neighborhood="Centre",
        member_count=4,
        children_count=2,
    )
    db.add(family)
    db.commit()
    return family


@pytest.fixture(scope="function")
def food_category(db: Session, test_org: Organization) -> Category:
    category = Category(organization_id=test_org.id, name="Food")
    db.add(category)
    db.commit()
    return category


@pytest.fixture(scope="function")
def rice_article(db: Session, test_org: Organization, food_category: Category) -> Article:
    article = Article(
        organization_id=test_org.id,
        category_id=food_category.id,
        name="Rice 1kg",
        stock_quantity=10,
        stock_min=2,
    )
    db.add(article)
    db.commit()
    return article


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


def mint_token(user: User) -> str:
    return create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
    )


@pytest.fixture(scope="function")
def test_auth(test_user: User, test_org: Organization) -> TestAuth:
    """Create JWT token for the admin test user."""
    return TestAuth(user=test_user, org=test_org, token=mint_token(test_user))


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
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(db: Session, test_auth: TestAuth) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated (admin) AsyncClient with JWT cookie and CSRF header.
    """
    _override_db(db)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def volunteer_client(db: Session, volunteer_user: User) -> AsyncGenerator[AsyncClient, None]:
    """Authenticated client for a volunteer (bearer header instead of cookie)."""
    _override_db(db)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={
            "Authorization": f"Bearer {mint_token(volunteer_user)}",
            CSRF_HEADER: CSRF_HEADER_VALUE,
        },
    ) as c:
        yield c
    app.dependency_overrides.clear()
