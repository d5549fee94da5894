"""Domain-specific exception classes for the negotiation service.

Every guard failure in the engine is raised as a subclass of
``NegotiationError``.  The HTTP layer maps each subclass to a status code in
one place (``negotiations.api.errors``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from negotiations.domain.types import NegotiationStatus

if TYPE_CHECKING:
    from negotiations.domain.models import Negotiation


class NegotiationError(Exception):
    """Base class for all domain errors in the negotiation service.

    Attributes:
        reason: Short human-readable reason returned to the caller.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class NotFoundError(NegotiationError):
    """Raised when a negotiation (or product) does not exist."""


class ForbiddenError(NegotiationError):
    """Raised when the caller's identity or role does not grant access."""


class UnauthenticatedError(NegotiationError):
    """Raised when an operation requires an authenticated principal."""

    def __init__(self, reason: str = "Authentication required") -> None:
        super().__init__(reason)


class ValidationFailureError(NegotiationError):
    """Raised for bad input: unknown product, non-positive price, duplicates."""


class DuplicateNegotiationError(ValidationFailureError):
    """Raised when the client already has a pending negotiation for the product."""

    def __init__(
        self, reason: str = "You already have an active negotiation for this product"
    ) -> None:
        super().__init__(reason)


class MissingIdentityError(ValidationFailureError):
    """Raised when neither a client token nor an email was supplied."""

    def __init__(
        self, reason: str = "Either client identifier or email is required"
    ) -> None:
        super().__init__(reason)


class InvalidTransitionError(NegotiationError):
    """Raised when a command is not allowed from the negotiation's current status.

    Attributes:
        current_status: The status the negotiation was in.
        event: The event that was rejected.
    """

    def __init__(
        self, current_status: NegotiationStatus, event: str, reason: str | None = None
    ) -> None:
        self.current_status = current_status
        self.event = event
        super().__init__(
            reason or f"Cannot apply event '{event}' in status '{current_status}'"
        )


class NegotiationCancelledError(InvalidTransitionError):
    """Raised when a proposal cancels the negotiation instead of reopening it.

    Unlike other transition failures this one carries a state change: the
    caller must persist ``negotiation`` (now ``cancelled``) before reporting
    the failure.

    Attributes:
        negotiation: The negotiation after the cancelling transition.
    """

    def __init__(self, negotiation: Negotiation, event: str, reason: str) -> None:
        self.negotiation = negotiation
        super().__init__(NegotiationStatus.REJECTED, event, reason)


class ConcurrentUpdateError(NegotiationError):
    """Raised when a compare-and-update finds a newer row version."""

    def __init__(self, negotiation_id: int, expected_version: int) -> None:
        self.negotiation_id = negotiation_id
        self.expected_version = expected_version
        super().__init__(
            f"Negotiation {negotiation_id} was modified concurrently; please retry"
        )
