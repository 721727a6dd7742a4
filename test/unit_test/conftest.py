"""
Database fixtures shared by the unit tests.

Each test gets a fresh in-memory SQLite database with every table created
from the ORM metadata, plus factories for the records most tests need.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel.pool import StaticPool

from takt.core.database import create_all, create_sessionmaker
from takt.core.database.entities import Organization, OrganizationMembership, User
from takt.core.models.domain.enums import FunctionalRole
from takt.core.security import hash_password
from takt.server.services.organizations import provision_organization, slugify

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Secret123"

# Hashing is slow on purpose; every factory user shares one hash.
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return create_sessionmaker(test_engine)


@pytest_asyncio.fixture(name="session")
async def session_fixture(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_org(session: AsyncSession):
    """Factory for organizations, provisioned the same way the API does it."""

    async def _make(name: str = "Acme Logistics", domain: Optional[str] = None, **fields) -> Organization:
        org, _ = await provision_organization(session, name=name, slug=fields.pop("slug", slugify(name)), domain=domain)
        for key, value in fields.items():
            setattr(org, key, value)
        session.add(org)
        await session.commit()
        return org

    return _make


@pytest.fixture
def make_user(session: AsyncSession):
    """Factory for verified users, optionally made members of ``org`` with ``role``."""

    async def _make(
        email: str = "planner@acme.com",
        org: Optional[Organization] = None,
        role: str = FunctionalRole.ADMIN.value,
        **fields,
    ) -> User:
        fields.setdefault("first_name", "Test")
        fields.setdefault("last_name", "User")
        fields.setdefault("email_verified", True)
        if org is not None:
            fields["current_org_id"] = org.id
        user = User(email=email, password_hash=_PASSWORD_HASH, **fields)
        session.add(user)
        await session.flush()
        if org is not None:
            session.add(OrganizationMembership(organization_id=org.id, user_id=user.id, role=role))
        await session.commit()
        return user

    return _make
