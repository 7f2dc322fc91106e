"""
Pytest configuration and fixtures for TaskNest API tests
"""
import os

# Settings are read at import time, so the environment has to be in place first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ["ENVIRONMENT"] = "test"
os.environ["ENABLE_OTEL_EXPORTER"] = "false"
os.environ["ENABLE_JSON_LOGGING"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.auth.security import Hasher
from app.db.database import get_db, Base
from app.db.crud.user import create_user_db
from app.db.models import User, UserRole

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "TestPassword123!"


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database and session for each test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests all run against the test session"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def test_user_data():
    return {
        "username": "alice",
        "email": "alice@example.com",
        "password": TEST_PASSWORD,
        "password_confirm": TEST_PASSWORD
    }


async def register(client: AsyncClient, username: str) -> dict:
    """Register a user over HTTP and return bearer headers plus the raw tokens"""
    response = await client.post("/api/v1/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": TEST_PASSWORD,
        "password_confirm": TEST_PASSWORD
    })
    assert response.status_code == 201, response.text
    tokens = response.json()
    return {
        "headers": {"Authorization": f"Bearer {tokens['access_token']}"},
        "access_token": tokens["access_token"],
        "refresh_token": tokens["refresh_token"],
    }


async def login(client: AsyncClient, username: str, password: str = TEST_PASSWORD) -> dict:
    response = await client.post("/api/v1/auth/login-json", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def authenticated_user(client: AsyncClient, test_user_data):
    tokens = await register(client, test_user_data["username"])
    return {**tokens, "user_data": test_user_data}


@pytest.fixture
async def auth_headers(authenticated_user) -> dict:
    return authenticated_user["headers"]


async def create_user(db: AsyncSession, username: str, role: UserRole = UserRole.USER,
                      password_hash: str = "not-a-real-hash") -> User:
    """Insert a user directly, skipping bcrypt, for engine-level tests"""
    return await create_user_db(db, {
        "username": username,
        "email": f"{username}@example.com",
        "hashed_password": password_hash,
        "role": role,
    })


@pytest.fixture
async def alice(db_session: AsyncSession) -> User:
    return await create_user(db_session, "alice")


@pytest.fixture
async def bob(db_session: AsyncSession) -> User:
    return await create_user(db_session, "bob")


@pytest.fixture
async def moderator(db_session: AsyncSession) -> User:
    return await create_user(db_session, "mod", role=UserRole.MODERATOR)


@pytest.fixture
async def admin_headers(client: AsyncClient, db_session: AsyncSession) -> dict:
    """Bearer headers for an ADMIN account created directly in the store"""
    await create_user(db_session, "root", role=UserRole.ADMIN, password_hash=Hasher.get_password_hash(TEST_PASSWORD))
    return await login(client, "root")


@pytest.fixture
async def moderator_headers(client: AsyncClient, db_session: AsyncSession) -> dict:
    await create_user(db_session, "moddy", role=UserRole.MODERATOR,
                      password_hash=Hasher.get_password_hash(TEST_PASSWORD))
    return await login(client, "moddy")
