"""
PlaceShare Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:          aiosqlite database file in tmp_path, tables created
    ├── session_factory:    async_sessionmaker bound to db_engine
    ├── make_user:          inserts a User and returns it (detached)
    ├── mock_db_session:    AsyncMock session for tests that must not touch a DB
    ├── sample_image_bytes: PNG bytes for upload tests
    ├── token_factory:      signs a JWT for a user id
    ├── auth_headers:       Authorization header for a user id
    └── test_client:        HTTPX AsyncClient with get_db_session overridden
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run BEFORE any app import: app.config builds its settings singleton
# from the environment at import time
_TEST_ROOT = tempfile.mkdtemp(prefix="placeshare_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["UPLOAD_ROOT"] = os.path.join(_TEST_ROOT, "uploads", "images")
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from app.config import settings  # noqa: E402
from app.database import Base, get_db_session  # noqa: E402
from app.models import Place, User  # noqa: E402,F401


def make_token(subject: Any, secret: str = None, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    """Sign a token the way the users module does at login."""
    payload: Dict[str, Any] = {
        "sub": str(subject),
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    A fresh SQLite database per test.

    A file (not :memory:) so every session gets its own connection, the
    way request sessions do against PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'places.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def make_user(session_factory):
    """
    Factory fixture: `user = await make_user("Alice")`.

    The returned user is detached; use its id and reload it to inspect places.
    """
    async def _make_user(name: str = "Alice", email: str = None) -> User:
        async with session_factory() as session:
            user = User(
                name=name,
                email=email or f"{name.lower()}-{uuid4().hex[:8]}@example.com",
                image="uploads/images/avatar.png",
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Used where a test must prove that no store access happened at all.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    session.in_transaction = MagicMock(return_value=False)
    return session


# ══════════════════════════════════════════════════════════════════════════
# Upload / Auth Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_image_bytes():
    """PNG signature plus a few bytes. Only the declared MIME type is checked."""
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


@pytest.fixture
def token_factory():
    """`token_factory(user_id, expires_in=..., secret=...)` → signed JWT"""
    return make_token


@pytest.fixture
def auth_headers():
    """`auth_headers(user.id)` → {"Authorization": "Bearer <jwt>"}"""
    def _auth_headers(user_id: Any) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _auth_headers


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Request sessions come from the per-test database instead of the
    configured one.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from app.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
