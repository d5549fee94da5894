"""HTTP surface for the negotiation service."""

from negotiations.api.errors import register_error_handlers
from negotiations.api.routes import router

__all__ = ["register_error_handlers", "router"]
