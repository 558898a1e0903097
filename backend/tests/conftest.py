"""Pytest configuration and fixtures for Arqos tests.

Provides reusable fixtures for the database, authentication, the wizard
snapshot store, and the HTTP client.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from arqos import models  # noqa: F401  (register mappers)
from arqos.auth.jwt import create_access_token
from arqos.database import Base, get_db
from arqos.main import app
from arqos.models.organization import Organization
from arqos.models.profile import Profile
from arqos.onboarding.snapshot import InMemorySnapshotStore
from arqos.routers.wizard import get_snapshot_store


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_factory() as session:
        yield session

        # Rollback transaction (no changes persist)
        await session.rollback()


@pytest.fixture
def snapshot_store() -> InMemorySnapshotStore:
    """Snapshot store shared by every request of one test."""
    return InMemorySnapshotStore()


@pytest_asyncio.fixture
async def client(
    db_session, snapshot_store
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database and snapshot dependencies."""

    async def override_get_db():
        yield db_session

    async def override_get_snapshot_store():
        return snapshot_store

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_snapshot_store] = override_get_snapshot_store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def test_organization(db_session: AsyncSession) -> Organization:
    """Create an organization that has not started setup."""
    org = Organization(name="Studio Ana", settings={"theme": "dark"})
    db_session.add(org)
    await db_session.flush()
    await db_session.refresh(org)
    return org


@pytest_asyncio.fixture
async def test_profile(
    db_session: AsyncSession, test_organization: Organization
) -> Profile:
    """Create the acting profile, member of `test_organization`."""
    profile = Profile(
        email="ana@studio.com",
        full_name="Ana Souza",
        is_active=True,
        organization_id=test_organization.id,
    )
    db_session.add(profile)
    await db_session.flush()
    await db_session.refresh(profile)
    return profile


@pytest.fixture
def test_token(test_profile: Profile) -> str:
    """Create test JWT token."""
    return create_access_token(
        profile_id=test_profile.id,
        organization_id=test_profile.organization_id,
    )


@pytest.fixture
def auth_headers(test_token: str) -> dict:
    """Create authorization headers with test token."""
    return {"Authorization": f"Bearer {test_token}"}


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
