"""NegotiationStateMachine: lifecycle transitions, attempt counting and deadlines."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from pydantic import ValidationError

from negotiations.domain.errors import (
    InvalidTransitionError,
    NegotiationCancelledError,
    ValidationFailureError,
)
from negotiations.domain.models import Negotiation
from negotiations.domain.types import NegotiationStatus
from negotiations.state_machine.transitions import NegotiationEvent, next_status

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RESPONSE_WINDOW = timedelta(days=7)

_INVALID_PRICE = "Proposed price must be greater than 0"


class NegotiationStateMachine:
    """Pure state machine governing a single negotiation's lifecycle.

    The machine never touches storage or the clock: callers pass ``now`` in
    and persist whatever comes back.  Every method either returns the next
    version of the negotiation or raises a ``NegotiationError``.

    The initial proposal counts as attempt 1, so with the default limit of 3
    a client gets exactly two re-proposals after the first rejection.

    Usage::

        sm = NegotiationStateMachine()
        neg = sm.open(product_id=1, proposed_price=Decimal("150.00"),
                      client_email="a@x.com", now=now)
        neg = sm.respond(neg, accept=False, responder_id=7, comment="too low", now=now)
        neg = sm.propose_new_price(neg, Decimal("175.00"), now=now)   # -> PENDING
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        response_window: timedelta = DEFAULT_RESPONSE_WINDOW,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.response_window = response_window

    def open(
        self,
        *,
        product_id: int,
        proposed_price: Decimal,
        client_email: str,
        now: datetime,
        client_token: str | None = None,
        client_name: str | None = None,
    ) -> Negotiation:
        """Create a new pending negotiation (attempt 1).

        Product existence and the duplicate-pending rule need the stores and
        are checked by the service before calling this.

        Raises:
            ValidationFailureError: If *proposed_price* is not positive or
                the client details do not validate.
        """
        if proposed_price <= 0:
            raise ValidationFailureError(_INVALID_PRICE)
        try:
            return Negotiation(
                product_id=product_id,
                proposed_price=proposed_price,
                client_token=client_token,
                client_email=client_email,
                client_name=client_name,
                status=NegotiationStatus.PENDING,
                attempt_count=1,
                created_at=now,
            )
        except ValidationError as exc:
            raise ValidationFailureError(
                f"Invalid negotiation: {exc.errors()[0]['msg']}"
            ) from exc

    def respond(
        self,
        negotiation: Negotiation,
        *,
        accept: bool,
        responder_id: int,
        comment: str | None,
        now: datetime,
    ) -> Negotiation:
        """Accept or reject a pending negotiation.

        A rejection opens a window of ``response_window`` (7 days by default)
        measured from the response time, during which the client may propose
        a new price.

        Raises:
            InvalidTransitionError: If the negotiation is not pending.
        """
        event = NegotiationEvent.ACCEPT if accept else NegotiationEvent.REJECT
        status = self._next(negotiation, event, "This negotiation is no longer pending")
        return negotiation.model_copy(
            update={
                "status": status,
                "response_date": now,
                "responded_by_user_id": responder_id,
                "response_comment": comment,
                "next_attempt_deadline": None if accept else now + self.response_window,
            }
        )

    def propose_new_price(
        self, negotiation: Negotiation, proposed_price: Decimal, *, now: datetime
    ) -> Negotiation:
        """Reopen a rejected negotiation with a new price.

        Guards run in order: status, deadline, attempt limit, price.  A
        proposal arriving exactly at the deadline is still accepted.

        Raises:
            InvalidTransitionError: If the negotiation is not rejected.
            NegotiationCancelledError: If the deadline has passed or the
                attempt limit is reached.  ``exc.negotiation`` is the
                cancelled negotiation and must be persisted by the caller.
            ValidationFailureError: If *proposed_price* is not positive.
        """
        self._next(
            negotiation,
            NegotiationEvent.PROPOSE_NEW_PRICE,
            "Can only propose a new price for rejected negotiations",
        )

        deadline = negotiation.next_attempt_deadline
        if deadline is not None and now > deadline:
            raise NegotiationCancelledError(
                self._cancel(negotiation, NegotiationEvent.EXPIRE),
                NegotiationEvent.EXPIRE,
                "The deadline for this negotiation has passed",
            )

        if negotiation.attempt_count >= self.max_attempts:
            raise NegotiationCancelledError(
                self._cancel(negotiation, NegotiationEvent.EXHAUST),
                NegotiationEvent.EXHAUST,
                f"Maximum number of negotiation attempts ({self.max_attempts}) "
                "has been reached",
            )

        if proposed_price <= 0:
            raise ValidationFailureError(_INVALID_PRICE)

        return negotiation.model_copy(
            update={
                "status": NegotiationStatus.PENDING,
                "proposed_price": proposed_price,
                "attempt_count": negotiation.attempt_count + 1,
                "response_date": None,
                "responded_by_user_id": None,
                "response_comment": None,
                "next_attempt_deadline": None,
            }
        )

    def _cancel(self, negotiation: Negotiation, event: NegotiationEvent) -> Negotiation:
        status = self._next(negotiation, event, None)
        return negotiation.model_copy(
            update={"status": status, "next_attempt_deadline": None}
        )

    @staticmethod
    def _next(
        negotiation: Negotiation, event: NegotiationEvent, reason: str | None
    ) -> NegotiationStatus:
        status = next_status(negotiation.status, event)
        if status is None:
            raise InvalidTransitionError(negotiation.status, event, reason)
        return status
