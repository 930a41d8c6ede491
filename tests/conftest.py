"""
Pytest fixtures for StackAtlas tests.

Tests run against a temp-file SQLite database (in-memory SQLite is
per-connection, and the app opens a connection per session).
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"

from stackatlas.config import get_settings
get_settings.cache_clear()

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from stackatlas.database import async_session_maker, engine
from stackatlas.kernel.models import Base
from stackatlas.kernel.models.base import enum_value
from stackatlas.kernel.models.user import User, UserRole
from stackatlas.kernel.identity.password import hash_password
from stackatlas.kernel.identity.jwt import JWTManager


@pytest_asyncio.fixture(autouse=True)
async def db_schema() -> AsyncGenerator[None, None]:
    """Fresh tables for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_maker():
    return async_session_maker


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A session on the test database."""
    async with async_session_maker() as session:
        yield session
        await session.rollback()


async def _create_user(session: AsyncSession, username: str, email: str, password: str, role: UserRole) -> User:
    user = User(
        id=uuid.uuid4(),
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a regular user."""
    return await _create_user(db_session, "testuser", "testuser@example.com", "TestPassword123", UserRole.USER)


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "otheruser", "other@example.com", "OtherPassword123", UserRole.USER)


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession) -> User:
    """Create an admin user."""
    return await _create_user(db_session, "admin", "admin@example.com", "AdminPass123", UserRole.ADMIN)


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager using the test settings."""
    return JWTManager()


def bearer(jwt_manager: JWTManager, user: User) -> dict:
    token, _, _ = jwt_manager.create_access_token(user_id=user.id, role=enum_value(user.role))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user: User, jwt_manager: JWTManager) -> dict:
    """Authentication headers for the regular user."""
    return bearer(jwt_manager, test_user)


@pytest.fixture
def admin_headers(test_admin: User, jwt_manager: JWTManager) -> dict:
    """Authentication headers for the admin."""
    return bearer(jwt_manager, test_admin)


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """In-process client against the app."""
    from stackatlas.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def valid_submission() -> dict:
    """Submission payload that passes every field rule."""
    return {
        "name": "  Linear  ",
        "industry": "SaaS",
        "scale": "Series B",
        "location": "San Francisco, CA",
        "description": "Issue tracking tool built for high-performance software teams.",
        "founded": 2019,
        "employees": "100+",
        "funding": "$52M Series B",
        "website": "linear.app",
        "tech_stack": {
            "frontend": ["React", " TypeScript ", "", "   "],
            "backend": ["Node.js"],
            "database": ["PostgreSQL"],
        },
    }
