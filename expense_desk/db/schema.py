"""Database schema DDL definitions and initialization utilities.

Tables:
  - users: registered employees and administrators (credential hash kept server side)
  - expenses: expense tickets owned by a user, with derived base-currency amounts
  - card_summaries: monthly card statement files attached to a user by an administrator
  - metadata: key/value store (schema version)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

USERS_DDL = f"""
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    display_name TEXT NOT NULL,
    sector TEXT NOT NULL,
    card_last4 TEXT NOT NULL,
    password_hash TEXT,
    is_admin INTEGER NOT NULL DEFAULT 0,
    is_code_verified INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_DDL = f"""
CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_user_id INTEGER NOT NULL,
    expense_date TEXT NOT NULL, -- ISO date (YYYY-MM-DD)
    reason TEXT NOT NULL,
    detail TEXT NOT NULL,
    amount REAL NOT NULL,
    currency TEXT NOT NULL,
    exchange_rate REAL, -- NULL for base currency
    amount_in_base_currency REAL, -- NULL/0 on legacy rows
    has_installments INTEGER NOT NULL DEFAULT 0,
    installment_count INTEGER,
    total_payable REAL NOT NULL,
    payment_channel TEXT NOT NULL, -- 'web' | 'in_person' | 'other'
    payment_channel_detail TEXT,
    document_url TEXT,
    document_name TEXT,
    document_type TEXT,
    loaded_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    FOREIGN KEY (owner_user_id) REFERENCES users(id)
);
"""

CARD_SUMMARIES_DDL = f"""
CREATE TABLE IF NOT EXISTS card_summaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_user_id INTEGER NOT NULL,
    period TEXT NOT NULL, -- YYYY-MM
    file_url TEXT NOT NULL,
    file_name TEXT NOT NULL,
    file_type TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    FOREIGN KEY (owner_user_id) REFERENCES users(id)
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_OWNER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_owner_date ON expenses(owner_user_id, expense_date);"
)
CARD_SUMMARIES_OWNER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_card_summaries_owner_period ON card_summaries(owner_user_id, period);"
)

DDL_ORDER: Sequence[str] = (
    USERS_DDL,
    EXPENSES_DDL,
    CARD_SUMMARIES_DDL,
    METADATA_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        _ensure_indexes(cur)
        conn.commit()
    finally:
        conn.close()


def _ensure_indexes(cur: sqlite3.Cursor) -> None:
    """Create indexes, tolerating legacy schemas missing newer columns."""
    for ddl in (EXPENSES_OWNER_INDEX_DDL, CARD_SUMMARIES_OWNER_INDEX_DDL):
        try:
            cur.execute(ddl)
        except sqlite3.OperationalError:
            # Legacy tables may lack columns; migration handles re-creation.
            continue
