"""Application entry point for the price negotiation API.

Configures:
- **structlog** with JSON rendering (production) or colored console (development),
  forwarding errors to Sentry when ``SENTRY_DSN`` is set
- **SQLite** database, negotiation repository and product store
- **FastAPI** app with negotiation routes, domain error handlers, request-id
  middleware, Prometheus metrics and health probes
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from negotiations.api.errors import register_error_handlers
from negotiations.api.routes import router as negotiations_router
from negotiations.config import Settings, get_settings, validate_secrets
from negotiations.health import register_health_routes
from negotiations.observability.metrics import setup_metrics
from negotiations.observability.middleware import RequestIdMiddleware
from negotiations.observability.sentry import get_sentry_processor, init_sentry
from negotiations.service import NegotiationService
from negotiations.state.database import Database
from negotiations.state.products import ProductStore
from negotiations.state.store import NegotiationRepository
from negotiations.state_machine.machine import NegotiationStateMachine

logger = structlog.get_logger()


def configure_logging(production: bool = False, sentry_enabled: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.

    Args:
        production: Enable production mode if ``True``.
        sentry_enabled: Insert the Sentry processor before the renderer.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
    ]
    if sentry_enabled:
        shared_processors.append(get_sentry_processor())
    shared_processors += [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service="negotiations-api")


def initialize_services(
    settings: Settings | None = None, db: Database | None = None
) -> dict[str, Any]:
    """Set up all shared services for the application.

    Opens the SQLite database (unless *db* is given), creates the
    negotiation repository, product store, state machine and service, and
    seeds the product catalog when ``SEED_PRODUCTS`` is on.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.
        db: An already-open database, used by tests.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    if db is None:
        db_path = settings.database_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        db = Database.open(db_path)
        logger.info("Database opened", path=str(db_path))
    services["db"] = db

    negotiations = NegotiationRepository(db)
    products = ProductStore(db, negotiations)
    services["negotiation_repository"] = negotiations
    services["product_store"] = products

    if settings.seed_products:
        products.seed_if_empty()

    machine = NegotiationStateMachine(
        max_attempts=settings.negotiation_max_attempts,
        response_window=timedelta(days=settings.negotiation_response_window_days),
    )
    services["negotiation_service"] = NegotiationService(negotiations, products, machine)

    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager: close the database on shutdown."""
    logger.info("FastAPI application starting")
    yield
    db = app.state.services.get("db")
    if db is not None:
        db.close()
        logger.info("Database connection closed")


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with routes, error handlers and observability.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Negotiations API", lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()
    fastapi_app.add_middleware(RequestIdMiddleware)
    fastapi_app.include_router(negotiations_router)
    register_error_handlers(fastapi_app)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)
    return fastapi_app


def run() -> None:
    """Main entry point: configure logging, build the app and serve it."""
    settings = get_settings()
    sentry_enabled = init_sentry(
        settings.sentry_dsn,
        environment="production" if settings.production else "development",
    )
    configure_logging(production=settings.production, sentry_enabled=sentry_enabled)
    logger.info("Application starting")

    validate_secrets(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    uvicorn.run(
        fastapi_app,
        host=settings.http_host,
        port=settings.http_port,
        log_level="info",
    )


if __name__ == "__main__":
    run()
