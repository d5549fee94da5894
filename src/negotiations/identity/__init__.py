"""Dual client identity (opaque token and/or email) resolution and matching."""

from negotiations.identity.resolver import (
    ClientIdentity,
    EmailIdentity,
    TokenAndEmailIdentity,
    TokenIdentity,
    identity_matches,
    require_identity,
    resolve_identity,
)

__all__ = [
    "ClientIdentity",
    "EmailIdentity",
    "TokenAndEmailIdentity",
    "TokenIdentity",
    "identity_matches",
    "require_identity",
    "resolve_identity",
]
