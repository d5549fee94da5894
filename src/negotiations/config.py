"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_secrets()``
startup gate that refuses to run production with the development JWT secret.

IMPORTANT: This module has ZERO imports from the ``negotiations`` package to
prevent circular imports.  Only stdlib, pydantic, pydantic_settings, and
structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

DEV_JWT_SECRET = "fallbackKeyForDevOnly"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields prevent accidental leaks in logs or error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    # -- Storage ---------------------------------------------------------------
    database_path: Path = Path("data/negotiations.db")
    seed_products: bool = True

    # -- Auth (bearer JWT) -----------------------------------------------------
    jwt_secret: SecretStr = SecretStr(DEV_JWT_SECRET)
    jwt_algorithm: str = "HS256"
    jwt_issuer: str | None = None
    jwt_audience: str | None = None

    # -- Negotiation policy ----------------------------------------------------
    negotiation_max_attempts: int = Field(default=3, ge=1)
    negotiation_response_window_days: int = Field(default=7, ge=1)

    # -- Observability ---------------------------------------------------------
    sentry_dsn: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list, never the full exception
        # which may contain raw SecretStr values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_secrets(settings: Settings) -> None:
    """Enforce a real JWT signing secret at startup.

    In **production** mode the application exits if ``JWT_SECRET`` is empty
    or still the development fallback.  In development the same condition is
    only logged as a warning.

    Args:
        settings: The loaded application settings.
    """
    secret = settings.jwt_secret.get_secret_value()
    problem: str | None = None
    if not secret:
        problem = "JWT_SECRET is empty or not set"
    elif secret == DEV_JWT_SECRET:
        problem = "JWT_SECRET is the development fallback"

    if problem is None:
        logger.info("secret_validation_passed")
        return

    if settings.production:
        logger.error("secret_missing", detail=problem)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print(f"  - {problem}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        logger.warning("secret_missing_dev", detail=problem)
