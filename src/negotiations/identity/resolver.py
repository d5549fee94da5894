"""Client identity resolution for unauthenticated callers.

A caller that is not logged in proves ownership of a negotiation with the
``Client-Identifier`` header it sent at creation time, with the email it
gave, or with both.  The three shapes are modelled as separate frozen types
so that "no token" and "empty token" never get confused in comparisons.

Matching is an OR: either identifier on its own is enough.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from negotiations.domain.errors import MissingIdentityError
from negotiations.domain.models import Negotiation


class TokenIdentity(BaseModel):
    """Caller identified only by the opaque client token."""

    model_config = ConfigDict(frozen=True)

    token: str

    @property
    def tokens(self) -> tuple[str, ...]:
        return (self.token,)

    @property
    def emails(self) -> tuple[str, ...]:
        return ()


class EmailIdentity(BaseModel):
    """Caller identified only by email."""

    model_config = ConfigDict(frozen=True)

    email: str

    @property
    def tokens(self) -> tuple[str, ...]:
        return ()

    @property
    def emails(self) -> tuple[str, ...]:
        return (self.email,)


class TokenAndEmailIdentity(BaseModel):
    """Caller that supplied both a client token and an email."""

    model_config = ConfigDict(frozen=True)

    token: str
    email: str

    @property
    def tokens(self) -> tuple[str, ...]:
        return (self.token,)

    @property
    def emails(self) -> tuple[str, ...]:
        return (self.email,)


ClientIdentity = TokenIdentity | EmailIdentity | TokenAndEmailIdentity


def resolve_identity(token: str | None, email: str | None) -> ClientIdentity | None:
    """Build the identity a request carries, if any.

    Args:
        token: Value of the ``Client-Identifier`` header, possibly empty.
        email: Value of the ``email`` query parameter, possibly empty.

    Returns:
        The matching identity variant, or ``None`` when neither value is
        a non-empty string.
    """
    if token and email:
        return TokenAndEmailIdentity(token=token, email=email)
    if token:
        return TokenIdentity(token=token)
    if email:
        return EmailIdentity(email=email)
    return None


def require_identity(token: str | None, email: str | None) -> ClientIdentity:
    """Like ``resolve_identity`` but raise when nothing was supplied.

    Raises:
        MissingIdentityError: If both token and email are absent or empty.
    """
    identity = resolve_identity(token, email)
    if identity is None:
        raise MissingIdentityError()
    return identity


def identity_matches(identity: ClientIdentity | None, negotiation: Negotiation) -> bool:
    """Return True if *identity* owns *negotiation*.

    The token matches only when the negotiation was created with a
    non-empty token equal to the supplied one; the email matches when it
    equals the stored client email.  Either is sufficient.
    """
    if identity is None:
        return False
    token_match = bool(negotiation.client_token) and negotiation.client_token in identity.tokens
    email_match = negotiation.client_email in identity.emails
    return token_match or email_match
