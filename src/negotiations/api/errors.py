"""Map domain errors onto HTTP responses.

Every guard failure raised by the engine is a ``NegotiationError``; one
handler turns it into ``{"detail": <reason>}`` with the matching status.
Malformed bodies and parameters get the same shape with status 400.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from negotiations.domain.errors import (
    ConcurrentUpdateError,
    ForbiddenError,
    NegotiationError,
    NotFoundError,
    UnauthenticatedError,
)

logger = structlog.get_logger()

# Checked in order; anything else is a client error (400).
_STATUS_BY_ERROR: list[tuple[type[NegotiationError], int]] = [
    (NotFoundError, 404),
    (ForbiddenError, 403),
    (UnauthenticatedError, 401),
    (ConcurrentUpdateError, 409),
]


def status_for(exc: NegotiationError) -> int:
    """Return the HTTP status code for a domain error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def negotiation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a ``NegotiationError`` as JSON with its reason."""
    assert isinstance(exc, NegotiationError)
    status_code = status_for(exc)
    logger.info(
        "request_rejected",
        path=request.url.path,
        status_code=status_code,
        error=type(exc).__name__,
        reason=exc.reason,
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code, content={"detail": exc.reason}, headers=headers
    )


def _describe(error: dict[str, Any]) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = str(error.get("msg", "Invalid request"))
    return f"{field}: {message}" if field else message


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a malformed request as a 400 naming the first offending field."""
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    reason = _describe(errors[0]) if errors else "Invalid request"
    logger.info(
        "request_rejected",
        path=request.url.path,
        status_code=400,
        error=type(exc).__name__,
        reason=reason,
    )
    return JSONResponse(status_code=400, content={"detail": reason})


def register_error_handlers(app: FastAPI) -> None:
    """Install the domain and request-validation error handlers on *app*."""
    app.add_exception_handler(NegotiationError, negotiation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
