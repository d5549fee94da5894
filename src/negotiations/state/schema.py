"""SQLite schema for products and negotiations.

Two partial unique indexes back the "one pending negotiation per product and
client" rule at the storage level, so a concurrent duplicate insert that
slips past the service check is still rejected.
"""

from __future__ import annotations

import sqlite3


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the products and negotiations tables if they do not exist.

    Args:
        conn: An open sqlite3.Connection (WAL mode recommended).
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            price TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS negotiations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            product_id INTEGER NOT NULL REFERENCES products (id),
            proposed_price TEXT NOT NULL,
            client_token TEXT,
            client_email TEXT NOT NULL,
            client_name TEXT,
            status TEXT NOT NULL,
            attempt_count INTEGER NOT NULL DEFAULT 1,
            responded_by_user_id INTEGER,
            response_comment TEXT,
            response_date TEXT,
            next_attempt_deadline TEXT,
            created_at TEXT NOT NULL,
            version INTEGER NOT NULL DEFAULT 1
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_neg_product ON negotiations (product_id)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_neg_client_email ON negotiations (client_email)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_neg_client_token ON negotiations (client_token)"
    )
    conn.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_neg_pending_email
        ON negotiations (product_id, client_email)
        WHERE status = 'pending'
    """)
    conn.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_neg_pending_token
        ON negotiations (product_id, client_token)
        WHERE status = 'pending' AND client_token IS NOT NULL
    """)

    if conn.in_transaction:
        conn.commit()
