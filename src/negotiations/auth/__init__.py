"""Caller authentication and negotiation access decisions."""

from negotiations.auth.gate import (
    Access,
    decide_proposal,
    decide_read,
    enforce,
    require_staff,
)
from negotiations.auth.principal import decode_principal, optional_principal

__all__ = [
    "Access",
    "decide_proposal",
    "decide_read",
    "decode_principal",
    "enforce",
    "optional_principal",
    "require_staff",
]
