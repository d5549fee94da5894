"""Tests for Negotiation, Product and Principal models."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from helpers import T0
from pydantic import ValidationError

from negotiations.domain.models import Negotiation, Principal, Product
from negotiations.domain.types import NegotiationStatus, Role


def _negotiation(**overrides: object) -> Negotiation:
    fields: dict[str, object] = {
        "product_id": 1,
        "proposed_price": Decimal("150.00"),
        "client_email": "a@x.com",
        "created_at": T0,
    }
    fields.update(overrides)
    return Negotiation(**fields)  # type: ignore[arg-type]


class TestNegotiation:
    def test_defaults_to_pending_first_attempt(self) -> None:
        neg = _negotiation()
        assert neg.status == NegotiationStatus.PENDING
        assert neg.attempt_count == 1
        assert neg.version == 1
        assert neg.id is None

    def test_is_frozen(self) -> None:
        neg = _negotiation()
        with pytest.raises(ValidationError):
            neg.proposed_price = Decimal("1")  # type: ignore[misc]

    def test_rejects_float_price(self) -> None:
        with pytest.raises(ValidationError, match="not float"):
            _negotiation(proposed_price=150.0)

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-5.00")])
    def test_rejects_non_positive_price(self, price: Decimal) -> None:
        with pytest.raises(ValidationError, match="greater than 0"):
            _negotiation(proposed_price=price)

    def test_accepts_string_price(self) -> None:
        assert _negotiation(proposed_price="99.95").proposed_price == Decimal("99.95")

    def test_requires_valid_email(self) -> None:
        with pytest.raises(ValidationError):
            _negotiation(client_email="not-an-email")

    def test_email_is_not_normalized(self) -> None:
        assert _negotiation(client_email="Alice@Example.COM").client_email == "Alice@Example.COM"

    def test_empty_client_token_becomes_none(self) -> None:
        assert _negotiation(client_token="").client_token is None

    def test_attempt_count_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            _negotiation(attempt_count=0)

    def test_pending_cannot_carry_a_response(self) -> None:
        with pytest.raises(ValidationError, match="pending exactly when"):
            _negotiation(responded_by_user_id=7, response_date=T0)

    def test_rejected_requires_a_response(self) -> None:
        with pytest.raises(ValidationError, match="pending exactly when"):
            _negotiation(status=NegotiationStatus.REJECTED)

    def test_deadline_only_on_rejected(self) -> None:
        with pytest.raises(ValidationError, match="only set on rejected"):
            _negotiation(
                status=NegotiationStatus.ACCEPTED,
                responded_by_user_id=7,
                response_date=T0,
                next_attempt_deadline=T0 + timedelta(days=7),
            )

    def test_rejected_with_deadline_is_valid(self) -> None:
        neg = _negotiation(
            status=NegotiationStatus.REJECTED,
            responded_by_user_id=7,
            response_date=T0,
            response_comment="too low",
            next_attempt_deadline=T0 + timedelta(days=7),
        )
        assert neg.next_attempt_deadline == T0 + timedelta(days=7)


class TestProduct:
    def test_valid_product(self) -> None:
        product = Product(id=1, name="Laptop", price=Decimal("1299.99"), created_at=T0)
        assert product.description == ""

    def test_rejects_zero_price(self) -> None:
        with pytest.raises(ValidationError):
            Product(id=1, name="Laptop", price=Decimal("0"), created_at=T0)


class TestPrincipal:
    @pytest.mark.parametrize("role", [Role.ADMIN, Role.SELLER])
    def test_admin_and_seller_are_staff(self, role: Role) -> None:
        assert Principal(user_id=1, roles=frozenset({role})).is_staff

    def test_client_is_not_staff(self) -> None:
        assert not Principal(user_id=1, roles=frozenset({Role.CLIENT})).is_staff

    def test_no_roles_is_not_staff(self) -> None:
        assert not Principal(user_id=1).is_staff
