"""Tests for schema migrations and the legacy base-amount backfill."""

from __future__ import annotations

import sqlite3

import pytest

from expense_desk.core.config import Settings
from expense_desk.core.errors import Unauthorized
from expense_desk.db import schema
from expense_desk.db.dal import Database
from expense_desk.db.migrate import CURRENT_SCHEMA_VERSION, _column_exists, apply_migrations
from expense_desk.models.expense import ExpenseOut, InPersonChannel, OtherChannel
from expense_desk.services.aggregation import ResolutionSource, resolve_base_total
from expense_desk.services.caller import Caller
from expense_desk.services.ledger import backfill_base_amounts

from conftest import auth, make_user

LEGACY_EXPENSES_DDL = """
CREATE TABLE expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_user_id INTEGER NOT NULL,
    expense_date TEXT NOT NULL,
    reason TEXT NOT NULL,
    detail TEXT NOT NULL,
    amount REAL NOT NULL,
    currency TEXT NOT NULL,
    exchange_rate REAL,
    has_installments INTEGER NOT NULL DEFAULT 0,
    installment_count INTEGER,
    total_payable REAL NOT NULL,
    payment_channel TEXT NOT NULL,
    payment_channel_detail TEXT,
    document_url TEXT,
    document_name TEXT,
    document_type TEXT,
    loaded_at TEXT NOT NULL DEFAULT '2023-01-01T00:00:00Z',
    updated_at TEXT NOT NULL DEFAULT '2023-01-01T00:00:00Z'
)
"""


@pytest.fixture
def legacy_db(tmp_path):
    path = tmp_path / "legacy.sqlite3"
    conn = sqlite3.connect(path)
    conn.execute(schema.USERS_DDL)
    conn.execute(LEGACY_EXPENSES_DDL)
    conn.execute(
        "INSERT INTO users (email, display_name, sector, card_last4, is_admin)"
        " VALUES ('jefa@pueblaequipo.com.ar', 'Jefa', 'Admin', '0000', 1)"
    )
    conn.executemany(
        "INSERT INTO expenses (owner_user_id, expense_date, reason, detail, amount, currency,"
        " exchange_rate, has_installments, installment_count, total_payable,"
        " payment_channel, payment_channel_detail)"
        " VALUES (1, ?, 'r', 'd', ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            ("2023-03-01", 20, "USD", 900, 1, 2, 40, "local", "Librería"),
            ("2023-03-02", 500, "ARS", None, 0, None, 500, "otro", None),
        ],
    )
    conn.commit()
    conn.close()
    return path


def test_fresh_database_is_current(tmp_path):
    path = tmp_path / "fresh.sqlite3"
    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION
    # Re-running is a no-op.
    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION


def test_legacy_upgrade(legacy_db):
    assert apply_migrations(legacy_db) == CURRENT_SCHEMA_VERSION
    conn = sqlite3.connect(legacy_db)
    try:
        assert _column_exists(conn.cursor(), "expenses", "amount_in_base_currency")
        channels = [r[0] for r in conn.execute("SELECT payment_channel FROM expenses ORDER BY id")]
    finally:
        conn.close()
    assert channels == ["in_person", "other"]

    # Newest first: the ARS row (2023-03-02) precedes the USD row.
    other, usd = [ExpenseOut.from_row(r) for r in Database(legacy_db).list_expenses_by_owner(1)]
    assert usd.payment_channel == InPersonChannel(store_name="Librería")
    assert other.payment_channel == OtherChannel(comment=None)
    # Legacy USD row: recomputed from the stored rate, not the stored total.
    resolved = resolve_base_total(usd)
    assert resolved.source is ResolutionSource.EXCHANGE_RECOMPUTE
    assert resolved.value == 36000


def test_backfill_fills_missing_base_amounts(legacy_db, tmp_path):
    apply_migrations(legacy_db)
    db = Database(legacy_db)
    settings = Settings(data_dir=tmp_path, db_path=legacy_db)
    admin = Caller(user_id=1, is_admin=True)

    assert backfill_base_amounts(db, settings, admin) == 2
    values = [r["amount_in_base_currency"] for r in db.list_expenses_by_owner(1)]
    assert values == [500, 18000]
    assert backfill_base_amounts(db, settings, admin) == 0


def test_backfill_requires_admin(legacy_db, tmp_path):
    apply_migrations(legacy_db)
    db = Database(legacy_db)
    user_id = make_user(db)
    settings = Settings(data_dir=tmp_path, db_path=legacy_db)
    with pytest.raises(Unauthorized):
        backfill_base_amounts(db, settings, Caller(user_id=user_id, is_admin=False))


def test_backfill_endpoint(client, admin_id, user_id):
    assert client.post("/admin/backfill-base-amounts", headers=auth(user_id)).status_code == 403
    resp = client.post("/admin/backfill-base-amounts", headers=auth(admin_id))
    assert resp.status_code == 200
    assert resp.json() == {"updated": 0}


def test_backfilled_rows_resolve_from_base_amount(legacy_db, tmp_path):
    apply_migrations(legacy_db)
    db = Database(legacy_db)
    settings = Settings(data_dir=tmp_path, db_path=legacy_db)
    backfill_base_amounts(db, settings, Caller(user_id=1, is_admin=True))

    usd = ExpenseOut.from_row(db.list_expenses_by_owner(1)[1])
    resolved = resolve_base_total(usd)
    assert resolved.source is ResolutionSource.BASE_AMOUNT
    assert resolved.value == 36000
