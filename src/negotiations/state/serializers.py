"""Row conversion helpers for negotiation domain objects.

Decimals are stored as text so no precision is lost, and datetimes as
ISO-8601 strings with their UTC offset and microseconds so that deadlines
survive the round-trip exactly.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Any

from negotiations.domain.models import Negotiation, Product


def format_timestamp(value: datetime | None) -> str | None:
    """Encode a datetime for storage (``None`` passes through)."""
    return value.isoformat() if value is not None else None


def parse_timestamp(value: str | None) -> datetime | None:
    """Decode a stored timestamp (``None`` passes through)."""
    return datetime.fromisoformat(value) if value is not None else None


def negotiation_to_row(negotiation: Negotiation) -> dict[str, Any]:
    """Flatten a negotiation into named query parameters.

    ``id`` and ``version`` are left out; the store owns both.
    """
    return {
        "product_id": negotiation.product_id,
        "proposed_price": str(negotiation.proposed_price),
        "client_token": negotiation.client_token,
        "client_email": negotiation.client_email,
        "client_name": negotiation.client_name,
        "status": negotiation.status.value,
        "attempt_count": negotiation.attempt_count,
        "responded_by_user_id": negotiation.responded_by_user_id,
        "response_comment": negotiation.response_comment,
        "response_date": format_timestamp(negotiation.response_date),
        "next_attempt_deadline": format_timestamp(negotiation.next_attempt_deadline),
        "created_at": format_timestamp(negotiation.created_at),
    }


def row_to_negotiation(row: sqlite3.Row) -> Negotiation:
    """Rebuild a ``Negotiation`` from a ``negotiations`` table row."""
    return Negotiation(
        id=row["id"],
        product_id=row["product_id"],
        proposed_price=Decimal(row["proposed_price"]),
        client_token=row["client_token"],
        client_email=row["client_email"],
        client_name=row["client_name"],
        status=row["status"],
        attempt_count=row["attempt_count"],
        responded_by_user_id=row["responded_by_user_id"],
        response_comment=row["response_comment"],
        response_date=parse_timestamp(row["response_date"]),
        next_attempt_deadline=parse_timestamp(row["next_attempt_deadline"]),
        created_at=parse_timestamp(row["created_at"]),
        version=row["version"],
    )


def row_to_product(row: sqlite3.Row) -> Product:
    """Rebuild a ``Product`` from a ``products`` table row."""
    return Product(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        price=Decimal(row["price"]),
        created_at=parse_timestamp(row["created_at"]),
    )
