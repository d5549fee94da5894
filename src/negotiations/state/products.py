"""SQLite-backed product catalog used by the negotiation engine.

Only what negotiations need: lookup, existence, insertion for seeding, and
deletion guarded by the active-negotiation rule.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import structlog

from negotiations.domain.errors import NotFoundError, ValidationFailureError
from negotiations.domain.models import Product
from negotiations.state.database import Database
from negotiations.state.serializers import format_timestamp, row_to_product
from negotiations.state.store import NegotiationRepository

logger = structlog.get_logger()

# Catalog loaded into an empty database at startup when SEED_PRODUCTS is on
SEED_PRODUCTS: list[tuple[str, str, Decimal]] = [
    ("Laptop", "High-performance laptop with 16GB RAM", Decimal("1299.99")),
    ("Smartphone", "Latest model with 128GB storage", Decimal("899.99")),
    ("Headphones", "Noise-cancelling wireless headphones", Decimal("249.99")),
    ("Monitor", "27-inch 4K display", Decimal("399.99")),
    ("Keyboard", "Mechanical keyboard with RGB lighting", Decimal("129.99")),
]


class ProductStore:
    """Read products by id and enforce the deletion rule."""

    def __init__(self, db: Database, negotiations: NegotiationRepository) -> None:
        self._db = db
        self._negotiations = negotiations

    def add(self, name: str, price: Decimal, description: str = "") -> Product:
        """Insert a product and return it with its assigned id."""
        if price <= 0:
            raise ValidationFailureError("Price must be greater than 0")
        created_at = datetime.now(tz=UTC)
        with self._db.unit_of_work():
            cursor = self._db.execute(
                "INSERT INTO products (name, description, price, created_at) "
                "VALUES (?, ?, ?, ?)",
                (name, description, str(price), format_timestamp(created_at)),
            )
        return Product(
            id=cursor.lastrowid or 0,
            name=name,
            description=description,
            price=price,
            created_at=created_at,
        )

    def get(self, product_id: int) -> Product | None:
        row = self._db.fetchone("SELECT * FROM products WHERE id = ?", (product_id,))
        return row_to_product(row) if row is not None else None

    def exists(self, product_id: int) -> bool:
        row = self._db.fetchone("SELECT 1 FROM products WHERE id = ?", (product_id,))
        return row is not None

    def delete(self, product_id: int) -> None:
        """Delete a product that has no pending or accepted negotiations.

        Raises:
            NotFoundError: If the product does not exist.
            ValidationFailureError: If an active negotiation references it.
        """
        with self._db.unit_of_work():
            if not self.exists(product_id):
                raise NotFoundError(f"Product {product_id} not found")
            if self._negotiations.blocks_product_deletion(product_id):
                raise ValidationFailureError(
                    "Cannot delete product with active negotiations."
                )
            # Closed negotiations go with the product
            self._db.execute("DELETE FROM negotiations WHERE product_id = ?", (product_id,))
            self._db.execute("DELETE FROM products WHERE id = ?", (product_id,))
        logger.info("product_deleted", product_id=product_id)

    def seed_if_empty(self) -> int:
        """Load ``SEED_PRODUCTS`` into an empty catalog; return how many were added."""
        with self._db.unit_of_work():
            row = self._db.fetchone("SELECT COUNT(*) AS n FROM products")
            if row is not None and row["n"] > 0:
                return 0
            for name, description, price in SEED_PRODUCTS:
                self.add(name, price, description)
        logger.info("products_seeded", count=len(SEED_PRODUCTS))
        return len(SEED_PRODUCTS)
