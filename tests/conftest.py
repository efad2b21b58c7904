"""
Pytest fixtures - test DB, client, seeded users (TDD/BDD support).
Challenge: Isolated tests; a fresh in-memory SQLite schema per test.
"""

import os
from functools import lru_cache

# Must be set before app modules build the engine from settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.main import app
from app.db.session import get_db
from app.db.models import User
from app.db.repositories.user_repository import UserRepository
from app.services.user_service import UserService
from app.core.security import hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,  # one shared in-memory database
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as s:
        yield s


@pytest_asyncio.fixture
async def client(session: AsyncSession):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def repo(session: AsyncSession) -> UserRepository:
    return UserRepository(session)


@pytest.fixture
def service(repo: UserRepository) -> UserService:
    return UserService(repo)


@lru_cache
def _hashed(password: str) -> str:
    """bcrypt is slow on purpose; hash each test password once per run."""
    return hash_password(password)


def _build_user(
    username: str = "john_doe",
    email: str = "john@example.com",
    first_name: str = "John",
    last_name: str = "Doe",
    password: str = "password123",
) -> User:
    """Unsaved user; tests persist it through the service so data is committed."""
    return User(
        username=username,
        email=email,
        hashed_password=_hashed(password),
        first_name=first_name,
        last_name=last_name,
    )


@pytest.fixture
def make_user():
    """Factory for unsaved users with a real password hash."""
    return _build_user


@pytest_asyncio.fixture
async def test_user(service: UserService) -> User:
    return await service.create_user(_build_user())


@pytest.fixture
def user_payload() -> dict:
    return {
        "username": "john_doe",
        "email": "john@example.com",
        "password": "secret-pass",
        "firstName": "John",
        "lastName": "Doe",
    }
