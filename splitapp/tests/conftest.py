"""
Centralized Test Configuration.

Each test gets a fresh in-memory SQLite database and a mock Redis.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from splitapp.app.main import app
from splitapp.app.db.session import get_db, Base
from splitapp.app.core.security import get_password_hash
from splitapp.app.models.user import User
import splitapp.app.core.redis_client as redis_client_module

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0


class RecordingDispatcher:
    """Stands in for the FastAPI-backed dispatcher in service-level tests."""

    def __init__(self):
        self.calls = []

    def submit(self, func, *args, **kwargs):
        self.calls.append((func, args, kwargs))


@pytest.fixture
def redis_mock(monkeypatch):
    mock = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", mock)
    return mock


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", set_sqlite_pragma)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Shared session for fixture data creation and service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory, redis_mock):
    """Async client for testing."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def make_user(db_session):
    """Create a verified user directly in the database."""
    async def _make_user(username: str, password: str = "password123") -> User:
        user = User(
            username=username,
            email=f"{username}@test.com",
            hashed_password=get_password_hash(password),
            is_verified=True,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make_user
