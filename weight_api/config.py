"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - database_url, when set, wins over the individual DB_* parts

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Audience is not configurable: the identity provider issues tokens for several
      clients and the API accepts all of them (ADR: relaxed audience check)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    db_host: str = "db"
    db_port: int = 5432
    db_user: str = "weights"
    db_password: str = ""
    db_name: str = "weights"
    database_url: str | None = None

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str | None) -> str | None:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v or None

    database_pool_size: int = 10
    database_max_overflow: int = 0
    database_pool_timeout: float = 30.0

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # Token verification
    jwks_url: str = (
        "http://keycloak:8080/realms/WeightTrackerAPI/protocol/openid-connect/certs"
    )
    token_issuer: str = "http://keycloak:8080/realms/WeightTrackerAPI"
    token_algorithms: list[str] = ["RS256"]
    jwks_timeout_seconds: float = 5.0
    jwks_cache_ttl_seconds: float = 600.0
    jwks_cooldown_seconds: float = 30.0

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def sqlalchemy_url(self) -> str | URL:
        """Full async database URL, assembled from parts unless overridden."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
