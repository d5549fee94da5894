"""FastAPI routes for negotiations.

Handlers are plain ``def`` functions, so FastAPI runs them in its thread
pool; serialization of concurrent writes happens in the service's unit of
work.  Request values are collected once into a ``RequestContext`` and
passed down explicitly.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request, status

from negotiations.api.schemas import (
    NegotiationCreateRequest,
    NegotiationOut,
    NegotiationRespondRequest,
    NewPriceRequest,
    ProposalResult,
    RespondResult,
)
from negotiations.auth.principal import optional_principal
from negotiations.domain.types import NegotiationStatus
from negotiations.service import NegotiationService, RequestContext

router = APIRouter(prefix="/negotiations", tags=["negotiations"])


def get_service(request: Request) -> NegotiationService:
    service: NegotiationService = request.app.state.services["negotiation_service"]
    return service


def get_request_context(
    request: Request,
    client_identifier: Annotated[str | None, Header(alias="Client-Identifier")] = None,
    email: Annotated[str | None, Query()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Collect principal, client token and email from the request."""
    principal = optional_principal(authorization, request.app.state.settings)
    return RequestContext(principal=principal, client_token=client_identifier, email=email)


ServiceDep = Annotated[NegotiationService, Depends(get_service)]
ContextDep = Annotated[RequestContext, Depends(get_request_context)]


@router.get("")
def list_negotiations(service: ServiceDep, ctx: ContextDep) -> list[NegotiationOut]:
    """List every negotiation (admin or seller)."""
    return [NegotiationOut.from_domain(n) for n in service.list_all(ctx)]


@router.get("/client")
def list_client_negotiations(service: ServiceDep, ctx: ContextDep) -> list[NegotiationOut]:
    """List the caller's negotiations by ``Client-Identifier`` and/or ``email``."""
    return [NegotiationOut.from_domain(n) for n in service.list_for_client(ctx)]


@router.get("/product/{product_id}")
def list_product_negotiations(
    product_id: int, service: ServiceDep, ctx: ContextDep
) -> list[NegotiationOut]:
    """List negotiations on one product (admin or seller)."""
    return [NegotiationOut.from_domain(n) for n in service.list_for_product(ctx, product_id)]


@router.get("/{negotiation_id}")
def get_negotiation(negotiation_id: int, service: ServiceDep, ctx: ContextDep) -> NegotiationOut:
    """Return one negotiation to a logged-in user or its owning client."""
    return NegotiationOut.from_domain(service.get(ctx, negotiation_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_negotiation(
    body: NegotiationCreateRequest, service: ServiceDep, ctx: ContextDep
) -> NegotiationOut:
    """Open a negotiation; the ``Client-Identifier`` header is stored with it."""
    negotiation = service.create(
        ctx,
        product_id=body.product_id,
        proposed_price=body.proposed_price,
        client_email=body.client_email,
        client_name=body.client_name,
    )
    return NegotiationOut.from_domain(negotiation)


@router.post("/{negotiation_id}/respond")
def respond_to_negotiation(
    negotiation_id: int,
    body: NegotiationRespondRequest,
    service: ServiceDep,
    ctx: ContextDep,
) -> RespondResult:
    """Accept or reject a pending negotiation (admin or seller)."""
    negotiation = service.respond(
        ctx, negotiation_id, accept=body.is_accepted, comment=body.comment
    )
    if negotiation.status == NegotiationStatus.ACCEPTED:
        message = "Negotiation accepted"
    else:
        days = service.response_window.days
        message = f"Negotiation rejected. Client has {days} days to propose a new price."
    return RespondResult(status=negotiation.status, message=message)


@router.post("/{negotiation_id}/propose-new-price")
def propose_new_price(
    negotiation_id: int,
    body: NewPriceRequest,
    service: ServiceDep,
    ctx: ContextDep,
) -> ProposalResult:
    """Propose a new price on a rejected negotiation (owning client only)."""
    negotiation = service.propose_new_price(ctx, negotiation_id, body.proposed_price)
    return ProposalResult(
        message="New price proposed successfully",
        attempt_count=negotiation.attempt_count,
    )
