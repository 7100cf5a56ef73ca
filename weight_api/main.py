"""Weight Tracker API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map WeightApiError → {ok: false, error} JSON responses
    - CORS configured from settings (not hardcoded)
    - Pool and token verifier are created in the lifespan, stored on app.state,
      and closed on shutdown (uvicorn stops accepting requests first)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Schema auto-provisioned on startup: a fresh database needs no manual step
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from weight_api.api.error_handlers import register_error_handlers
from weight_api.api.routes import goal, health, token_echo, weights
from weight_api.config import Settings, get_settings
from weight_api.infrastructure.database import DatabaseSessionManager
from weight_api.infrastructure.observability import setup_logging
from weight_api.infrastructure.token_verifier import RemoteKeySet, TokenVerifier

logger = logging.getLogger(__name__)


def build_token_verifier(settings: Settings) -> TokenVerifier:
    key_set = RemoteKeySet(
        settings.jwks_url,
        timeout_seconds=settings.jwks_timeout_seconds,
        cache_ttl_seconds=settings.jwks_cache_ttl_seconds,
        cooldown_seconds=settings.jwks_cooldown_seconds,
    )
    return TokenVerifier(
        key_set, settings.token_issuer, settings.token_algorithms,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = DatabaseSessionManager(
        settings.sqlalchemy_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
    )
    try:
        await db.create_schema()
    except Exception:
        logger.critical("Failed to start API: database unavailable", exc_info=True)
        await db.close()
        raise
    app.state.db = db
    app.state.token_verifier = build_token_verifier(settings)
    logger.info(f"Weight API started on :{settings.port}")
    yield
    logger.info("Weight API shutting down")
    await app.state.token_verifier.aclose()
    await db.close()


app = FastAPI(title="Weight Tracker API", version="1.0.0", lifespan=lifespan)

# CORS: configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(token_echo.router)
app.include_router(weights.router)
app.include_router(goal.router)

register_error_handlers(app)
