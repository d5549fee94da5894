"""Domain types, models, and errors for the negotiation service."""

from negotiations.domain.errors import (
    ConcurrentUpdateError,
    DuplicateNegotiationError,
    ForbiddenError,
    InvalidTransitionError,
    MissingIdentityError,
    NegotiationCancelledError,
    NegotiationError,
    NotFoundError,
    UnauthenticatedError,
    ValidationFailureError,
)
from negotiations.domain.models import Negotiation, Principal, Product
from negotiations.domain.types import (
    PRODUCT_BLOCKING_STATUSES,
    STAFF_ROLES,
    NegotiationStatus,
    Role,
)

__all__ = [
    "PRODUCT_BLOCKING_STATUSES",
    "STAFF_ROLES",
    "ConcurrentUpdateError",
    "DuplicateNegotiationError",
    "ForbiddenError",
    "InvalidTransitionError",
    "MissingIdentityError",
    "Negotiation",
    "NegotiationCancelledError",
    "NegotiationError",
    "NegotiationStatus",
    "NotFoundError",
    "Principal",
    "Product",
    "Role",
    "UnauthenticatedError",
    "ValidationFailureError",
]
