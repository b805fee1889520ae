import json
import os
from typing import AsyncGenerator, Awaitable, Callable

# Point the app at SQLite before settings are loaded
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("DEBUG", "false")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from parasocial.main import app
from parasocial.database import Base, get_db, enable_sqlite_foreign_keys
from parasocial.core.redis import get_redis
from parasocial.core.security import create_access_token
from parasocial.models import User
from parasocial.repositories.follow import FollowRepository
from parasocial.schemas.user import UserCreate
from parasocial.services.follow import FollowService
from parasocial.services.user import UserService

# Test database URL (use SQLite for simplicity or PostgreSQL)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,
)
enable_sqlite_foreign_keys(test_engine)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker:
    """Extra sessions on the test schema, for concurrent-request scenarios."""
    return TestSessionLocal


class MockRedisClient:
    """Mock Redis client for testing."""

    def __init__(self):
        self.data = {}

    async def get(self, key: str):
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int = None):
        self.data[key] = value
        return True

    async def delete(self, *keys: str):
        count = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                count += 1
        return count

    async def get_json(self, key: str):
        value = self.data.get(key)
        return json.loads(value) if value else None

    async def set_json(self, key: str, value, ttl: int = None):
        self.data[key] = json.dumps(value)
        return True


@pytest.fixture
def mock_redis() -> MockRedisClient:
    """Create a mock Redis client."""
    return MockRedisClient()


@pytest.fixture
def follow_repository(db_session: AsyncSession) -> FollowRepository:
    return FollowRepository(db_session)


@pytest.fixture
def user_service(db_session: AsyncSession, mock_redis: MockRedisClient) -> UserService:
    return UserService(db_session, mock_redis)


@pytest.fixture
def follow_service(
    follow_repository: FollowRepository,
    user_service: UserService,
    mock_redis: MockRedisClient,
) -> FollowService:
    return FollowService(follow_repository, user_service, mock_redis)


@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for committed local accounts."""

    async def _create_user(username: str, **overrides) -> User:
        data = UserCreate(username=username, email=f"{username}@example.com")
        user = await UserService(db_session).create(data)
        for field, value in overrides.items():
            setattr(user, field, value)
        await db_session.commit()
        return user

    return _create_user


@pytest.fixture
def auth_headers() -> Callable[[User], dict]:
    """Build a Bearer header for a user."""

    def _auth_headers(user: User) -> dict:
        token = create_access_token({"sub": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
async def client(db_session: AsyncSession, mock_redis: MockRedisClient) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
