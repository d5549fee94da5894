"""Domain enumerations for the price negotiation service."""

from enum import StrEnum


class NegotiationStatus(StrEnum):
    """States in the negotiation lifecycle."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Role(StrEnum):
    """Roles carried by an authenticated principal."""

    ADMIN = "admin"
    SELLER = "seller"
    CLIENT = "client"


# Roles allowed to respond to negotiations and list them across clients
STAFF_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SELLER})

# A product cannot be deleted while any of its negotiations is in one of these
PRODUCT_BLOCKING_STATUSES: frozenset[NegotiationStatus] = frozenset(
    {NegotiationStatus.PENDING, NegotiationStatus.ACCEPTED}
)
