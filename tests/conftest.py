"""Shared pytest fixtures for the negotiation service test suite."""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from typing import Any

import pytest
from helpers import T0, TEST_JWT_SECRET, FakeClock

from negotiations.app import initialize_services
from negotiations.config import Settings
from negotiations.domain.models import Negotiation
from negotiations.domain.types import NegotiationStatus
from negotiations.service import NegotiationService
from negotiations.state.database import Database, connect
from negotiations.state.products import ProductStore
from negotiations.state.schema import init_schema
from negotiations.state.store import NegotiationRepository
from negotiations.state_machine.machine import NegotiationStateMachine


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, with a known JWT secret."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        jwt_secret=TEST_JWT_SECRET,  # type: ignore[arg-type]
        seed_products=False,
    )


@pytest.fixture
def db() -> Iterator[Database]:
    """In-memory SQLite database with the schema initialized."""
    conn = connect(":memory:")
    init_schema(conn)
    database = Database(conn)
    yield database
    database.close()


@pytest.fixture
def repository(db: Database) -> NegotiationRepository:
    return NegotiationRepository(db)


@pytest.fixture
def products(db: Database, repository: NegotiationRepository) -> ProductStore:
    """Product store holding product 1 (Laptop) and product 2 (Monitor)."""
    store = ProductStore(db, repository)
    store.add("Laptop", Decimal("1299.99"), "High-performance laptop")
    store.add("Monitor", Decimal("399.99"), "27-inch 4K display")
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def machine() -> NegotiationStateMachine:
    return NegotiationStateMachine()


@pytest.fixture
def service(
    repository: NegotiationRepository,
    products: ProductStore,
    machine: NegotiationStateMachine,
    clock: FakeClock,
) -> NegotiationService:
    return NegotiationService(repository, products, machine, clock=clock)


@pytest.fixture
def pending_negotiation() -> Negotiation:
    """A stored-looking pending negotiation created at ``T0``."""
    return Negotiation(
        id=1,
        product_id=1,
        proposed_price=Decimal("150.00"),
        client_token="device-abc",
        client_email="a@x.com",
        client_name="Alice",
        status=NegotiationStatus.PENDING,
        attempt_count=1,
        created_at=T0,
    )


@pytest.fixture
def services(settings: Settings, db: Database, clock: FakeClock) -> dict[str, Any]:
    """Application services over the test database, driven by the fake clock."""
    services = initialize_services(settings, db=db)
    services["product_store"].add("Laptop", Decimal("1299.99"))
    services["product_store"].add("Monitor", Decimal("399.99"))
    services["negotiation_service"] = NegotiationService(
        services["negotiation_repository"], services["product_store"], clock=clock
    )
    return services
