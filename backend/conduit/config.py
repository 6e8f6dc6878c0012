"""
Conduit Backend: Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types and ranges, and produces a `Settings` object.
Who:   `create_app()` receives a Settings instance and hands it to the
       components that need it (database, token service, list options).
When:  Built once per application instance; immutable afterwards.

Injection Model:
    No module reads configuration from global state at request time.
    The application factory stores the Settings object on `app.state`,
    and request-scoped dependencies read it from there. `get_settings()`
    only supplies the default instance used by `uvicorn conduit.main:app`
    and by Alembic.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "conduit-development-secret-change-me-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development against a
    SQLite file. Production deployments MUST override JWT_SECRET_KEY.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: <dialect>+<async driver>://...
    # e.g. sqlite+aiosqlite:///./conduit.db or postgresql+asyncpg://u:p@host/db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./conduit.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing is ignored for SQLite, which manages its own pool class.
    db_pool_size: int = Field(default=20, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Create missing tables on startup. Alembic remains the migration tool
    # for shared databases; this is for throwaway SQLite files.
    db_auto_create: bool = Field(default=True)

    # ── Authentication ────────────────────────────────────────────────────
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="HMAC secret used to sign access tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_days: int = Field(default=7, ge=1, le=365)
    jwt_issuer: str = Field(default="conduit")

    # ── Article Listing ───────────────────────────────────────────────────
    # Applied when the client omits `limit` or sends an unusable value.
    default_page_size: int = Field(default=20, ge=1, le=1000)
    # Upper bound for a client-supplied `limit`.
    max_page_size: int = Field(default=100, ge=1, le=1000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated list of origins (parsed by cors_origins_list).
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:4100")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("max_page_size")
    @classmethod
    def validate_max_page_size(cls, v: int, info: ValidationInfo) -> int:
        """The ceiling can never sit below the default page size."""
        default = info.data.get("default_page_size", 20)
        if v < default:
            raise ValueError(
                f"max_page_size ({v}) must be >= default_page_size ({default})"
            )
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that security-critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises a single ValueError.
        """
        errors = []
        if not self.jwt_secret_key or self.jwt_secret_key == DEFAULT_JWT_SECRET:
            errors.append(
                "JWT_SECRET_KEY is not set. Tokens are signed with a publicly "
                "known development secret."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


@lru_cache
def get_settings() -> Settings:
    """Default Settings built from the process environment (cached)."""
    return Settings()
