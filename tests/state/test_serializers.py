"""Tests for negotiation and product row conversion."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from helpers import T0

from negotiations.domain.models import Negotiation
from negotiations.domain.types import NegotiationStatus
from negotiations.state.database import Database
from negotiations.state.serializers import (
    format_timestamp,
    negotiation_to_row,
    parse_timestamp,
    row_to_negotiation,
)


class TestTimestamps:
    def test_none_passes_through(self) -> None:
        assert format_timestamp(None) is None
        assert parse_timestamp(None) is None

    def test_keeps_offset_and_microseconds(self) -> None:
        value = T0 + timedelta(microseconds=123456)
        encoded = format_timestamp(value)
        assert encoded == "2026-03-01T12:00:00.123456+00:00"
        assert parse_timestamp(encoded) == value


class TestNegotiationRows:
    def test_row_leaves_out_id_and_version(self, pending_negotiation: Negotiation) -> None:
        row = negotiation_to_row(pending_negotiation)
        assert "id" not in row
        assert "version" not in row
        assert row["proposed_price"] == "150.00"
        assert row["status"] == "pending"
        assert row["created_at"] == T0.isoformat()

    def test_rejected_negotiation_survives_storage(self, db: Database) -> None:
        rejected = Negotiation(
            product_id=1,
            proposed_price=Decimal("150.10"),
            client_email="a@x.com",
            status=NegotiationStatus.REJECTED,
            responded_by_user_id=7,
            response_comment="too low",
            response_date=T0,
            next_attempt_deadline=T0 + timedelta(days=7),
            created_at=T0,
        )
        db.execute("INSERT INTO products (name, price, created_at) VALUES ('p', '1', 'now')")
        row = negotiation_to_row(rejected)
        db.execute(
            f"INSERT INTO negotiations ({', '.join(row)}) "
            f"VALUES ({', '.join(':' + k for k in row)})",
            row,
        )

        loaded = row_to_negotiation(db.fetchone("SELECT * FROM negotiations"))

        assert loaded.id == 1
        assert loaded.version == 1
        assert loaded.proposed_price == Decimal("150.10")
        assert loaded.next_attempt_deadline == T0 + timedelta(days=7)
        assert loaded.model_dump(exclude={"id"}) == rejected.model_dump(exclude={"id"})
