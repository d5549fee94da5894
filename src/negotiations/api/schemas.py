"""Request and response bodies for the negotiation HTTP API.

Price positivity is deliberately not enforced here: the engine reports it as
a 400 with the same reason string on every route.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from negotiations.domain.models import ClientEmail, Negotiation
from negotiations.domain.types import NegotiationStatus


class NegotiationCreateRequest(BaseModel):
    """Body of ``POST /negotiations``."""

    product_id: int
    proposed_price: Decimal
    client_email: ClientEmail
    client_name: str | None = None


class NegotiationRespondRequest(BaseModel):
    """Body of ``POST /negotiations/{id}/respond``."""

    is_accepted: bool
    comment: str | None = None


class NewPriceRequest(BaseModel):
    """Body of ``POST /negotiations/{id}/propose-new-price``."""

    proposed_price: Decimal


class NegotiationOut(BaseModel):
    """Public representation of a negotiation."""

    id: int
    product_id: int
    proposed_price: Decimal
    client_token: str | None
    client_email: str
    client_name: str | None
    status: NegotiationStatus
    attempt_count: int
    responded_by_user_id: int | None
    response_comment: str | None
    response_date: datetime | None
    next_attempt_deadline: datetime | None
    created_at: datetime

    @classmethod
    def from_domain(cls, negotiation: Negotiation) -> NegotiationOut:
        return cls.model_validate(negotiation.model_dump(exclude={"version"}))


class RespondResult(BaseModel):
    status: NegotiationStatus
    message: str


class ProposalResult(BaseModel):
    message: str
    attempt_count: int
