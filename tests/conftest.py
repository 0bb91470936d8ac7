"""Pytest configuration and fixtures for StoryNest tests."""
import os
from typing import AsyncGenerator, Awaitable, Callable

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test env BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AI_PROVIDER"] = "openai"
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["SENTRY_DSN"] = ""

# Clear config cache so get_settings picks up test env
from app.config import get_settings

get_settings.cache_clear()

from app.main import app
from app.database import get_db
from app.models.base import Base
from app.services.public_feed import seed_theme_unlocks

TEST_PASSWORD = "TestPass123!"

RegisterFn = Callable[[str], Awaitable[dict]]


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test, with themes seeded."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        await seed_theme_unlocks(session)
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client: AsyncClient) -> RegisterFn:
    """Factory: register an account and return {id, email, token, headers}."""

    async def _register(email: str) -> dict:
        response = await client.post("/auth/register", json={"email": email, "password": TEST_PASSWORD})
        assert response.status_code == 201, response.text
        data = response.json()
        token = data["token"]
        return {
            "id": data["user"]["id"],
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _register


@pytest.fixture
async def test_user(register_user: RegisterFn) -> dict:
    return await register_user("test@example.com")


@pytest.fixture
async def auth_headers(test_user: dict) -> dict:
    return test_user["headers"]


@pytest.fixture
async def other_user(register_user: RegisterFn) -> dict:
    return await register_user("other@example.com")


@pytest.fixture
def generate(client: AsyncClient):
    """Factory: POST /stories/generate with the given headers and prompt."""

    async def _generate(headers: dict, prompt: str = "a dragon who is afraid of heights", **extra):
        return await client.post("/stories/generate", json={"prompt": prompt, **extra}, headers=headers)

    return _generate
