"""Test helpers shared across modules: a fake clock and bearer-token minting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt

TEST_JWT_SECRET = "test-secret-key-for-negotiations"
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Deterministic clock for the service; advance it explicitly."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_token(
    user_id: int | str, roles: list[str], secret: str = TEST_JWT_SECRET, **claims: Any
) -> str:
    """Mint an HS256 bearer token the way the identity provider would."""
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "roles": roles,
        "exp": int((datetime.now(tz=UTC) + timedelta(hours=1)).timestamp()),
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: int = 1, roles: list[str] | None = None) -> dict[str, str]:
    """``Authorization`` header for a staff user (admin by default)."""
    token = make_token(user_id, roles if roles is not None else ["admin"])
    return {"Authorization": f"Bearer {token}"}
