"""Negotiation persistence package.

Provides the shared SQLite database, the negotiation repository facade, the
product store, and row serialization helpers.
"""

from negotiations.state.database import Database, connect
from negotiations.state.products import ProductStore
from negotiations.state.schema import init_schema
from negotiations.state.store import NegotiationFilter, NegotiationRepository

__all__ = [
    "Database",
    "NegotiationFilter",
    "NegotiationRepository",
    "ProductStore",
    "connect",
    "init_schema",
]
