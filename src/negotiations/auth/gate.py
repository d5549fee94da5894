"""Authorization decisions for negotiation reads and writes.

Request values (principal, client token, email) are passed in explicitly;
nothing here reads ambient request state.
"""

from __future__ import annotations

from enum import StrEnum

from negotiations.domain.errors import ForbiddenError, NotFoundError, UnauthenticatedError
from negotiations.domain.models import Negotiation, Principal
from negotiations.identity.resolver import ClientIdentity, identity_matches


class Access(StrEnum):
    """Outcome of an access decision."""

    ALLOW = "allow"
    FORBID = "forbid"
    NOT_FOUND = "not_found"


def decide_read(
    principal: Principal | None,
    identity: ClientIdentity | None,
    negotiation: Negotiation | None,
) -> Access:
    """Any authenticated user may read; anonymous callers must own it."""
    if negotiation is None:
        return Access.NOT_FOUND
    if principal is not None or identity_matches(identity, negotiation):
        return Access.ALLOW
    return Access.FORBID


def decide_proposal(
    identity: ClientIdentity | None, negotiation: Negotiation | None
) -> Access:
    """Only the owning client may propose a new price.

    Authentication grants nothing here: staff cannot re-propose on a
    client's behalf.
    """
    if negotiation is None:
        return Access.NOT_FOUND
    if identity_matches(identity, negotiation):
        return Access.ALLOW
    return Access.FORBID


def enforce(access: Access, negotiation_id: int) -> None:
    """Raise the error matching a non-ALLOW decision.

    Raises:
        NotFoundError: For ``Access.NOT_FOUND``.
        ForbiddenError: For ``Access.FORBID``.
    """
    if access is Access.NOT_FOUND:
        raise NotFoundError(f"Negotiation {negotiation_id} not found")
    if access is Access.FORBID:
        raise ForbiddenError("You are not authorized to access this negotiation")


def require_staff(principal: Principal | None) -> Principal:
    """Return *principal* if it holds the admin or seller role.

    Raises:
        UnauthenticatedError: If there is no authenticated principal.
        ForbiddenError: If the principal has neither role.
    """
    if principal is None:
        raise UnauthenticatedError()
    if not principal.is_staff:
        raise ForbiddenError("Admin or seller role required")
    return principal
