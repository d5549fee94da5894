"""Tests for domain enumerations and role groupings."""

from negotiations.domain.types import (
    PRODUCT_BLOCKING_STATUSES,
    STAFF_ROLES,
    NegotiationStatus,
    Role,
)


class TestNegotiationStatus:
    def test_has_four_states(self) -> None:
        assert {s.value for s in NegotiationStatus} == {
            "pending",
            "accepted",
            "rejected",
            "cancelled",
        }

    def test_is_string_comparable(self) -> None:
        assert NegotiationStatus.PENDING == "pending"
        assert str(NegotiationStatus.CANCELLED) == "cancelled"


class TestRoles:
    def test_staff_roles_are_admin_and_seller(self) -> None:
        assert STAFF_ROLES == {Role.ADMIN, Role.SELLER}

    def test_client_is_not_staff(self) -> None:
        assert Role.CLIENT not in STAFF_ROLES


def test_products_blocked_by_pending_and_accepted_only() -> None:
    assert PRODUCT_BLOCKING_STATUSES == {NegotiationStatus.PENDING, NegotiationStatus.ACCEPTED}
