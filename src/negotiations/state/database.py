"""Shared SQLite connection with a store-scoped lock and unit of work.

Request handlers run in a thread pool and share one connection, so every
statement runs under a re-entrant lock.  ``unit_of_work()`` additionally
holds that lock across a whole read-guard-write sequence inside an
``BEGIN IMMEDIATE`` transaction: two requests touching the same negotiation
(or racing to create one) are serialized, and a failure rolls everything
back.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from negotiations.state.schema import init_schema


def connect(db_path: Path | str) -> sqlite3.Connection:
    """Open a connection in autocommit mode with WAL and foreign keys enabled.

    Autocommit mode (``isolation_level=None``) leaves transaction control to
    ``Database.unit_of_work``.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        An open sqlite3.Connection usable from any thread.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False, isolation_level=None)
    conn.row_factory = sqlite3.Row
    if str(db_path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


class Database:
    """A locked SQLite connection shared by the product and negotiation stores."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._depth = 0

    @classmethod
    def open(cls, db_path: Path | str) -> Database:
        """Connect to *db_path* and make sure the schema exists."""
        conn = connect(db_path)
        init_schema(conn)
        return cls(conn)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @property
    def in_unit_of_work(self) -> bool:
        return self._depth > 0

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        """Run the enclosed block as one serialized, all-or-nothing transaction.

        Nested calls on the same thread join the outer transaction.
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._conn.execute("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield
            except BaseException:
                self._conn.rollback()
                raise
            else:
                self._conn.commit()
            finally:
                self._depth = 0

    def execute(self, sql: str, params: Sequence[Any] | dict[str, Any] = ()) -> sqlite3.Cursor:
        """Execute one parameterized statement under the store lock."""
        with self._lock:
            return self._conn.execute(sql, params)

    def fetchall(self, sql: str, params: Sequence[Any] | dict[str, Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def fetchone(self, sql: str, params: Sequence[Any] | dict[str, Any] = ()) -> sqlite3.Row | None:
        with self._lock:
            row: sqlite3.Row | None = self._conn.execute(sql, params).fetchone()
            return row

    def ping(self) -> None:
        """Run ``SELECT 1``; raises ``sqlite3.Error`` if the connection is unusable."""
        self.fetchone("SELECT 1")

    def close(self) -> None:
        with self._lock:
            self._conn.close()
