"""Shared fixtures: in-memory SQLite database, owners, and an API client."""

import httpx
import pytest
import pytest_asyncio

from config.settings import Settings
from taskflow.models.database import Database
from taskflow.services.auth_service import AuthError, AuthUser

OWNER = "user-alice"
OTHER_OWNER = "user-bob"

TOKENS = {
    "token-alice": AuthUser(id=OWNER, email="alice@example.com"),
    "token-bob": AuthUser(id=OTHER_OWNER, email="bob@example.com"),
}


class FakeVerifier:
    """Maps fixed tokens to users instead of calling the auth provider."""

    async def verify(self, token: str) -> AuthUser:
        try:
            return TOKENS[token]
        except KeyError:
            raise AuthError("Invalid token") from None


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "cron_secret": "cron-secret",
        "scheduler_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def database(settings):
    """Create a fresh in-memory SQLite database for each test."""
    db = Database.from_settings(settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database):
    async with database.session() as session:
        yield session


@pytest.fixture
def app(settings, database):
    from taskflow.web.app import create_app

    return create_app(settings, database=database, verifier=FakeVerifier())


@pytest_asyncio.fixture
async def client(app):
    """HTTP client authenticated as OWNER."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer token-alice"},
    ) as c:
        yield c


@pytest_asyncio.fixture
async def other_client(app):
    """HTTP client authenticated as OTHER_OWNER."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer token-bob"},
    ) as c:
        yield c


@pytest.fixture
def owners():
    return {"owner": OWNER, "other": OTHER_OWNER}

