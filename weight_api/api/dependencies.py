"""Request Dependencies — database session, record store, token verifier, caller identity.

Invariants:
    - Shared resources (pool, verifier) are read from app.state, set in the lifespan
    - require_identity runs before any handler body; a rejection means no storage access
    - Protected routes declare identity BEFORE the store, so 401 precedes session use

Design Decisions:
    - Dependencies over module singletons: tests swap them via app.dependency_overrides
"""

from typing import AsyncGenerator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from weight_api.core.domain_types import Identity
from weight_api.infrastructure.token_verifier import TokenVerifier
from weight_api.services.record_store import RecordStore


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    db_manager = getattr(request.app.state, "db", None)
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session


def get_record_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return RecordStore(db)


def get_token_verifier(request: Request) -> TokenVerifier:
    verifier = getattr(request.app.state, "token_verifier", None)
    if verifier is None:
        raise RuntimeError("Token verifier not initialized")
    return verifier


async def require_identity(
    authorization: str | None = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """Verified caller, or MissingBearerError / InvalidTokenError (401)."""
    return await verifier.verify(authorization)
