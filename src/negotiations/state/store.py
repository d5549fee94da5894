"""SQLite-backed negotiation repository.

The only component that reads or writes the ``negotiations`` table.  Uses
parameterized queries exclusively.  Writes join the caller's unit of work
when one is open and otherwise run in their own.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel, ConfigDict

from negotiations.domain.errors import ConcurrentUpdateError, DuplicateNegotiationError
from negotiations.domain.models import Negotiation
from negotiations.domain.types import PRODUCT_BLOCKING_STATUSES, NegotiationStatus
from negotiations.identity.resolver import ClientIdentity
from negotiations.state.database import Database
from negotiations.state.serializers import negotiation_to_row, row_to_negotiation


class NegotiationFilter(BaseModel):
    """Query filter for ``NegotiationRepository.list_where``.

    All fields are optional and combined with AND.  ``identity`` matches
    negotiations owned by any of the identifiers it carries (OR).
    """

    model_config = ConfigDict(frozen=True)

    product_id: int | None = None
    statuses: frozenset[NegotiationStatus] | None = None
    identity: ClientIdentity | None = None


def _identity_clause(identity: ClientIdentity) -> tuple[str, list[Any]]:
    parts: list[str] = []
    params: list[Any] = []
    for token in identity.tokens:
        parts.append("client_token = ?")
        params.append(token)
    for email in identity.emails:
        parts.append("client_email = ?")
        params.append(email)
    return "(" + " OR ".join(parts) + ")", params


class NegotiationRepository:
    """Persist and query negotiations.

    ``update`` is a compare-and-update on the row ``version``: it only
    succeeds if nobody else has written the row since it was read.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    @contextmanager
    def unit_of_work(self) -> Iterator[NegotiationRepository]:
        """Serialize a read-guard-write sequence; see ``Database.unit_of_work``."""
        with self._db.unit_of_work():
            yield self

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def create(self, negotiation: Negotiation) -> int:
        """Insert a new negotiation and return its id.

        Raises:
            DuplicateNegotiationError: If the pending-uniqueness indexes
                reject the row.
        """
        row = negotiation_to_row(negotiation)
        columns = ", ".join(row)
        placeholders = ", ".join(f":{name}" for name in row)
        with self._db.unit_of_work():
            try:
                cursor = self._db.execute(
                    f"INSERT INTO negotiations ({columns}) VALUES ({placeholders})",
                    row,
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" not in str(exc):
                    raise
                raise DuplicateNegotiationError() from exc
        return cursor.lastrowid or 0

    def update(self, negotiation: Negotiation) -> Negotiation:
        """Write *negotiation* back if its ``version`` is still current.

        Returns:
            The negotiation with its bumped ``version``.

        Raises:
            ConcurrentUpdateError: If the stored version differs.
            DuplicateNegotiationError: If reopening would give the client a
                second pending negotiation on the product.
            ValueError: If the negotiation has never been persisted.
        """
        if negotiation.id is None:
            raise ValueError("Cannot update a negotiation without an id")
        row = negotiation_to_row(negotiation)
        assignments = ", ".join(f"{name} = :{name}" for name in row)
        row.update(id=negotiation.id, version=negotiation.version)
        with self._db.unit_of_work():
            try:
                cursor = self._db.execute(
                    f"UPDATE negotiations SET {assignments}, version = version + 1 "
                    "WHERE id = :id AND version = :version",
                    row,
                )
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" not in str(exc):
                    raise
                raise DuplicateNegotiationError() from exc
            if cursor.rowcount != 1:
                raise ConcurrentUpdateError(negotiation.id, negotiation.version)
        return negotiation.model_copy(update={"version": negotiation.version + 1})

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def get_by_id(self, negotiation_id: int) -> Negotiation | None:
        row = self._db.fetchone("SELECT * FROM negotiations WHERE id = ?", (negotiation_id,))
        return row_to_negotiation(row) if row is not None else None

    def list_where(self, query: NegotiationFilter | None = None) -> list[Negotiation]:
        """Return negotiations matching *query*, oldest first."""
        query = query or NegotiationFilter()
        conditions: list[str] = []
        params: list[Any] = []

        if query.product_id is not None:
            conditions.append("product_id = ?")
            params.append(query.product_id)

        if query.statuses is not None:
            if not query.statuses:
                return []
            placeholders = ", ".join("?" for _ in query.statuses)
            conditions.append(f"status IN ({placeholders})")
            params.extend(s.value for s in sorted(query.statuses))

        if query.identity is not None:
            clause, identity_params = _identity_clause(query.identity)
            conditions.append(clause)
            params.extend(identity_params)

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)

        rows = self._db.fetchall(f"SELECT * FROM negotiations {where_clause} ORDER BY id", params)
        return [row_to_negotiation(row) for row in rows]

    def exists_pending_for(self, product_id: int, identity: ClientIdentity) -> bool:
        """Return True if *identity* already has a pending negotiation on the product."""
        return bool(
            self.list_where(
                NegotiationFilter(
                    product_id=product_id,
                    statuses=frozenset({NegotiationStatus.PENDING}),
                    identity=identity,
                )
            )
        )

    def blocks_product_deletion(self, product_id: int) -> bool:
        """Return True while any negotiation on the product is pending or accepted."""
        return bool(
            self.list_where(
                NegotiationFilter(product_id=product_id, statuses=PRODUCT_BLOCKING_STATUSES)
            )
        )
