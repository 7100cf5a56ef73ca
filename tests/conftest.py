"""Root conftest — shared fixtures: in-memory database and fake identity provider.

Invariants:
    - Every test gets a fresh in-memory SQLite database with both tables created
    - Token verification uses real RS256 signatures against a mocked JWKS endpoint

Design Decisions:
    - StaticPool: one shared connection, so every session sees the same :memory: DB
      (ADR: PostgreSQL-specific features not exercised here)
"""

import os

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure tests never reach a real database or identity provider
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("LOG_FORMAT", "text")

from tests.fake_idp import ISSUER, JWKS_URL, FakeIdentityProvider, SigningKey  # noqa: E402
from weight_api.db.base import Base  # noqa: E402
from weight_api.infrastructure.database import DatabaseSessionManager  # noqa: E402
from weight_api.infrastructure.token_verifier import RemoteKeySet, TokenVerifier  # noqa: E402
from weight_api.services.record_store import RecordStore  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_manager(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
async def store(db_manager):
    async with db_manager.session() as session:
        yield RecordStore(session)


@pytest.fixture(scope="session")
def signing_key():
    return SigningKey("test-key-1")


@pytest.fixture
def idp(signing_key):
    return FakeIdentityProvider(signing_key)


@pytest.fixture
async def jwks_client(idp):
    async with httpx.AsyncClient(transport=idp.transport) as client:
        yield client


@pytest.fixture
def key_set(jwks_client):
    return RemoteKeySet(JWKS_URL, http_client=jwks_client)


@pytest.fixture
def token_verifier(key_set):
    return TokenVerifier(key_set, ISSUER, ["RS256"])
