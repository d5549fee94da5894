"""Pydantic v2 models for domain data structures in the negotiation service."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, field_validator, model_validator

from negotiations.domain.types import STAFF_ROLES, NegotiationStatus, Role


def _reject_float(v: object) -> object:
    if isinstance(v, float):
        raise ValueError("Use Decimal or string, not float, for monetary values")
    return v


def _check_email(v: str) -> str:
    try:
        validate_email(v, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"value is not a valid email address: {exc}") from exc
    return v


# Validated like EmailStr but kept exactly as submitted; ownership checks
# compare it verbatim against the caller's email.
ClientEmail = Annotated[str, AfterValidator(_check_email)]


class Product(BaseModel):
    """A catalog product that negotiations refer to by id."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    price: Decimal
    created_at: datetime

    @field_validator("price", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        """Ensure the list price is greater than zero."""
        if v <= 0:
            raise ValueError("Price must be greater than 0")
        return v


class Principal(BaseModel):
    """An authenticated caller resolved from a bearer token."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    roles: frozenset[Role] = frozenset()

    @property
    def is_staff(self) -> bool:
        """Return True if the principal may act as admin or seller."""
        return bool(self.roles & STAFF_ROLES)


class Negotiation(BaseModel):
    """A single price negotiation between a client and the shop.

    Instances are immutable; the state machine returns updated copies via
    ``model_copy``.  ``version`` is the row token used for compare-and-update
    in the repository and is bumped by the store, not by transitions.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    product_id: int
    proposed_price: Decimal
    client_token: str | None = None
    client_email: ClientEmail
    client_name: str | None = None
    status: NegotiationStatus = NegotiationStatus.PENDING
    attempt_count: int = 1
    responded_by_user_id: int | None = None
    response_comment: str | None = None
    response_date: datetime | None = None
    next_attempt_deadline: datetime | None = None
    created_at: datetime
    version: int = 1

    @field_validator("proposed_price", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("proposed_price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        """Ensure the proposed price is greater than zero."""
        if v <= 0:
            raise ValueError("Proposed price must be greater than 0")
        return v

    @field_validator("client_token")
    @classmethod
    def empty_token_is_none(cls, v: str | None) -> str | None:
        """Normalise an empty client token to ``None``."""
        return v or None

    @field_validator("attempt_count")
    @classmethod
    def attempt_count_must_be_positive(cls, v: int) -> int:
        """Ensure attempt_count is at least 1 (the initial proposal counts)."""
        if v < 1:
            raise ValueError("attempt_count must be at least 1")
        return v

    @model_validator(mode="after")
    def response_fields_match_status(self) -> "Negotiation":
        """Keep response bookkeeping consistent with the lifecycle status."""
        is_pending = self.status == NegotiationStatus.PENDING
        unanswered = self.responded_by_user_id is None and self.response_date is None
        if is_pending != unanswered:
            raise ValueError(
                "A negotiation is pending exactly when it has no response recorded"
            )
        if (
            self.next_attempt_deadline is not None
            and self.status != NegotiationStatus.REJECTED
        ):
            raise ValueError("next_attempt_deadline is only set on rejected negotiations")
        return self
