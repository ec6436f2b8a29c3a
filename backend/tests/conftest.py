"""
Photobook Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets a fresh in-memory SQLite database (aiosqlite) with the
       full schema and SAVEPOINT support, so services run against a real
       SQLAlchemy session instead of mocks.

Fixture Hierarchy:
    Function-scoped:
    ├── db_engine:      in-memory aiosqlite engine with tables created
    ├── db_session:     AsyncSession bound to db_engine
    ├── admin / photographer / anonymous: AuthContext values
    ├── make_submission: SubmissionCreate builder with sensible defaults
    └── test_client:    HTTPX AsyncClient with get_db_session overridden
"""

import os

# Override settings BEFORE any photobook import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["ADMIN_USER_ID"] = "admin"

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from photobook.auth import ANONYMOUS, AuthContext, admin_context
from photobook.database import Base, enable_sqlite_savepoints, get_db_session
from photobook.models import notification, submission  # noqa: F401
from photobook.schemas.submission import SubmissionCreate


@pytest_asyncio.fixture
async def db_engine():
    """
    One in-memory database per test.

    StaticPool keeps a single connection alive; with `:memory:` every new
    connection would otherwise see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def admin() -> AuthContext:
    return admin_context()


@pytest.fixture
def photographer() -> AuthContext:
    return AuthContext(user_id="p1", role="photographer")


@pytest.fixture
def anonymous() -> AuthContext:
    return ANONYMOUS


@pytest.fixture
def make_submission():
    """
    Builder for SubmissionCreate payloads.

    Usage:
        data = make_submission("gallery", title="Wedding", request_homepage=True)
    """
    def _make(resource_type: str = "gallery", **overrides) -> SubmissionCreate:
        fields = {"type": resource_type, "title": f"Test {resource_type}"}
        if resource_type == "photographer":
            fields.update(email="studio@example.com", mobile="9876543210")
        fields.update(overrides)
        return SubmissionCreate(**fields)

    return _make


@pytest.fixture
def admin_headers() -> dict:
    return {"X-User-Id": "admin", "X-User-Role": "admin"}


@pytest.fixture
def photographer_headers() -> dict:
    return {"X-User-Id": "p1", "X-User-Role": "photographer"}


@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    get_db_session is replaced by a session on the test engine that commits
    on success and rolls back on error, mirroring the real dependency.
    """
    from photobook.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
