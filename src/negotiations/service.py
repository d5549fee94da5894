"""Negotiation command boundary.

``NegotiationService`` is what the HTTP layer calls.  Each command runs its
load, guard and write inside one repository unit of work, so concurrent
requests on the same negotiation (or racing creates for the same product and
client) are serialized.  Guard failures surface as ``NegotiationError``
subclasses; the cancellation outcomes are written before they are raised.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import structlog
from pydantic import BaseModel, ConfigDict

from negotiations.auth.gate import decide_proposal, decide_read, enforce, require_staff
from negotiations.domain.errors import (
    DuplicateNegotiationError,
    NegotiationCancelledError,
    NotFoundError,
    ValidationFailureError,
)
from negotiations.domain.models import Negotiation, Principal
from negotiations.identity.resolver import (
    ClientIdentity,
    require_identity,
    resolve_identity,
)
from negotiations.observability.metrics import NEGOTIATION_TRANSITIONS, NEGOTIATIONS_CREATED
from negotiations.state.products import ProductStore
from negotiations.state.store import NegotiationFilter, NegotiationRepository
from negotiations.state_machine.machine import NegotiationStateMachine

logger = structlog.get_logger()


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class RequestContext(BaseModel):
    """Caller values taken from one HTTP request.

    Attributes:
        principal: The authenticated user, if a valid bearer token was sent.
        client_token: The ``Client-Identifier`` header, possibly empty.
        email: The ``email`` query parameter, possibly empty.
    """

    model_config = ConfigDict(frozen=True)

    principal: Principal | None = None
    client_token: str | None = None
    email: str | None = None

    @property
    def identity(self) -> ClientIdentity | None:
        return resolve_identity(self.client_token, self.email)


class NegotiationService:
    """Create, read, respond to and re-propose negotiations."""

    def __init__(
        self,
        negotiations: NegotiationRepository,
        products: ProductStore,
        machine: NegotiationStateMachine | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._negotiations = negotiations
        self._products = products
        self._machine = machine or NegotiationStateMachine()
        self._clock = clock

    @property
    def response_window(self) -> timedelta:
        """How long a rejected client has to propose a new price."""
        return self._machine.response_window

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(
        self,
        ctx: RequestContext,
        *,
        product_id: int,
        proposed_price: Decimal,
        client_email: str,
        client_name: str | None = None,
    ) -> Negotiation:
        """Open a negotiation for the calling client.

        The client token comes from the request context; the email from the
        body.  A client is a duplicate if either its token or its email
        already owns a pending negotiation on the product.

        Raises:
            ValidationFailureError: Unknown product, non-positive price, or
                an existing pending negotiation (``DuplicateNegotiationError``).
        """
        with self._negotiations.unit_of_work():
            if not self._products.exists(product_id):
                raise ValidationFailureError("Product not found")

            negotiation = self._machine.open(
                product_id=product_id,
                proposed_price=proposed_price,
                client_email=client_email,
                client_token=ctx.client_token,
                client_name=client_name,
                now=self._clock(),
            )

            owner = require_identity(negotiation.client_token, negotiation.client_email)
            if self._negotiations.exists_pending_for(product_id, owner):
                raise DuplicateNegotiationError()

            negotiation_id = self._negotiations.create(negotiation)

        created = negotiation.model_copy(update={"id": negotiation_id})
        NEGOTIATIONS_CREATED.inc()
        logger.info(
            "negotiation_created",
            negotiation_id=negotiation_id,
            product_id=product_id,
            has_client_token=created.client_token is not None,
        )
        return created

    def respond(
        self,
        ctx: RequestContext,
        negotiation_id: int,
        *,
        accept: bool,
        comment: str | None = None,
    ) -> Negotiation:
        """Accept or reject a pending negotiation as an admin or seller.

        Raises:
            UnauthenticatedError / ForbiddenError: Caller is not staff.
            NotFoundError: No such negotiation.
            InvalidTransitionError: The negotiation is not pending.
        """
        staff = require_staff(ctx.principal)
        with self._negotiations.unit_of_work():
            negotiation = self._load(negotiation_id)
            updated = self._machine.respond(
                negotiation,
                accept=accept,
                responder_id=staff.user_id,
                comment=comment,
                now=self._clock(),
            )
            updated = self._negotiations.update(updated)

        NEGOTIATION_TRANSITIONS.labels(status=updated.status.value).inc()
        logger.info(
            "negotiation_accepted" if accept else "negotiation_rejected",
            negotiation_id=negotiation_id,
            responded_by=staff.user_id,
            deadline=updated.next_attempt_deadline,
        )
        return updated

    def propose_new_price(
        self, ctx: RequestContext, negotiation_id: int, proposed_price: Decimal
    ) -> Negotiation:
        """Reopen a rejected negotiation with a new price, as its owning client.

        Raises:
            NotFoundError: No such negotiation.
            ForbiddenError: The caller's token/email does not own it.
            InvalidTransitionError: The negotiation is not rejected.
            NegotiationCancelledError: The deadline passed or attempts ran
                out; the negotiation has been saved as cancelled.
            ValidationFailureError: Non-positive price.
        """
        cancelled: NegotiationCancelledError | None = None
        with self._negotiations.unit_of_work():
            negotiation = self._negotiations.get_by_id(negotiation_id)
            enforce(decide_proposal(ctx.identity, negotiation), negotiation_id)
            assert negotiation is not None

            try:
                updated = self._machine.propose_new_price(
                    negotiation, proposed_price, now=self._clock()
                )
            except NegotiationCancelledError as exc:
                updated = exc.negotiation
                cancelled = exc
            updated = self._negotiations.update(updated)

        NEGOTIATION_TRANSITIONS.labels(status=updated.status.value).inc()
        if cancelled is not None:
            logger.info(
                "negotiation_cancelled",
                negotiation_id=negotiation_id,
                cause=cancelled.event,
                attempt_count=updated.attempt_count,
            )
            raise cancelled

        logger.info(
            "negotiation_reproposed",
            negotiation_id=negotiation_id,
            attempt_count=updated.attempt_count,
        )
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, ctx: RequestContext, negotiation_id: int) -> Negotiation:
        """Return a negotiation to an authenticated user or its owning client.

        Raises:
            NotFoundError / ForbiddenError
        """
        negotiation = self._negotiations.get_by_id(negotiation_id)
        enforce(decide_read(ctx.principal, ctx.identity, negotiation), negotiation_id)
        assert negotiation is not None
        return negotiation

    def list_for_client(self, ctx: RequestContext) -> list[Negotiation]:
        """Return every negotiation owned by the caller's token OR email.

        Raises:
            MissingIdentityError: Neither identifier was supplied.
        """
        identity = require_identity(ctx.client_token, ctx.email)
        return self._negotiations.list_where(NegotiationFilter(identity=identity))

    def list_all(self, ctx: RequestContext) -> list[Negotiation]:
        require_staff(ctx.principal)
        return self._negotiations.list_where()

    def list_for_product(self, ctx: RequestContext, product_id: int) -> list[Negotiation]:
        require_staff(ctx.principal)
        return self._negotiations.list_where(NegotiationFilter(product_id=product_id))

    def _load(self, negotiation_id: int) -> Negotiation:
        negotiation = self._negotiations.get_by_id(negotiation_id)
        if negotiation is None:
            raise NotFoundError(f"Negotiation {negotiation_id} not found")
        return negotiation
