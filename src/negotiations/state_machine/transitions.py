"""Transition map defining all valid (status, event) -> status mappings."""

from enum import StrEnum

from negotiations.domain.types import NegotiationStatus


class NegotiationEvent(StrEnum):
    """Events that can trigger status transitions in a negotiation."""

    ACCEPT = "accept"
    REJECT = "reject"
    PROPOSE_NEW_PRICE = "propose_new_price"
    EXPIRE = "expire"
    EXHAUST = "exhaust"


# All valid (current_status, event) -> next_status mappings.
# Any pair not in this dict is an invalid transition.
TRANSITIONS: dict[tuple[NegotiationStatus, str], NegotiationStatus] = {
    # From PENDING
    (NegotiationStatus.PENDING, NegotiationEvent.ACCEPT): NegotiationStatus.ACCEPTED,
    (NegotiationStatus.PENDING, NegotiationEvent.REJECT): NegotiationStatus.REJECTED,
    # From REJECTED
    (NegotiationStatus.REJECTED, NegotiationEvent.PROPOSE_NEW_PRICE): NegotiationStatus.PENDING,
    (NegotiationStatus.REJECTED, NegotiationEvent.EXPIRE): NegotiationStatus.CANCELLED,
    (NegotiationStatus.REJECTED, NegotiationEvent.EXHAUST): NegotiationStatus.CANCELLED,
}

TERMINAL_STATES: frozenset[NegotiationStatus] = frozenset(
    {NegotiationStatus.ACCEPTED, NegotiationStatus.CANCELLED}
)


def next_status(current: NegotiationStatus, event: str) -> NegotiationStatus | None:
    """Return the status *event* leads to from *current*, or None if invalid."""
    return TRANSITIONS.get((current, event))
