"""Bearer JWT verification producing an authenticated ``Principal``.

Tokens are issued elsewhere; this module only verifies them.  The user id is
read from ``sub`` and roles from a ``roles`` list (or a single ``role``
string), matched case-insensitively.
"""

from __future__ import annotations

from typing import Any

import structlog
from jose import JWTError, jwt
from pydantic import ValidationError

from negotiations.config import Settings
from negotiations.domain.errors import UnauthenticatedError
from negotiations.domain.models import Principal
from negotiations.domain.types import Role

logger = structlog.get_logger()


def _claimed_roles(payload: dict[str, Any]) -> frozenset[Role]:
    raw = payload.get("roles")
    if raw is None:
        raw = [payload["role"]] if "role" in payload else []
    elif isinstance(raw, str):
        raw = [raw]
    known = {r.value for r in Role}
    roles: set[Role] = set()
    for claimed in raw:
        name = str(claimed).lower()
        if name in known:
            roles.add(Role(name))
        else:
            logger.debug("unknown_role_ignored", role=claimed)
    return frozenset(roles)


def decode_principal(token: str, settings: Settings) -> Principal:
    """Verify *token* and return the principal it names.

    Args:
        token: The raw JWT (without the ``Bearer`` prefix).
        settings: Settings carrying the secret, algorithm, issuer and audience.

    Returns:
        The authenticated ``Principal``.

    Raises:
        UnauthenticatedError: If the signature, lifetime, issuer or audience
            check fails, or the ``sub`` claim is not a user id.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"verify_aud": settings.jwt_audience is not None},
        )
        return Principal(user_id=int(payload["sub"]), roles=_claimed_roles(payload))
    except (JWTError, KeyError, ValueError, ValidationError) as exc:
        raise UnauthenticatedError("Could not validate credentials") from exc


def optional_principal(authorization: str | None, settings: Settings) -> Principal | None:
    """Resolve the principal from an ``Authorization`` header, if any.

    Anonymous access is allowed on most negotiation routes, so a missing or
    invalid token yields ``None`` instead of an error.  Routes that need a
    principal reject ``None`` through ``require_staff``.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return decode_principal(token.strip(), settings)
    except UnauthenticatedError:
        logger.warning("bearer_token_rejected")
        return None
