"""Expense submission, edits and listings.

Request handlers call into this module with an explicit ``Caller``; it
applies the conversion and installment rules, checks attachment locators
against the blob store and writes through the DAL. Any failure aborts the
whole operation before the row is written.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from expense_desk.core.config import Settings
from expense_desk.core.errors import DocumentNotFound, ExpenseNotFound, UnsupportedCurrency
from expense_desk.db.dal import Database
from expense_desk.models.expense import (
    DocumentRef,
    ExpenseIn,
    ExpenseOut,
    ExpenseWithOwner,
    channel_to_columns,
)
from expense_desk.services.access import require_admin
from expense_desk.services.blob_store import BlobStore
from expense_desk.services.caller import Caller
from expense_desk.services.conversion import derive_amounts
from expense_desk.services.money import round2, scale

logger = logging.getLogger("app.ledger")


def _check_document(blob_store: BlobStore, document: Optional[DocumentRef]) -> None:
    if document is not None and not blob_store.exists(document.url):
        raise DocumentNotFound()


def build_expense_fields(
    payload: ExpenseIn, settings: Settings, blob_store: BlobStore
) -> Dict[str, Any]:
    """Validate a submission and return the full column set, derived fields included."""
    if payload.currency not in settings.supported_currencies:
        raise UnsupportedCurrency(f"unsupported currency '{payload.currency}'")
    derived = derive_amounts(
        amount=payload.amount,
        currency=payload.currency,
        exchange_rate=payload.exchange_rate,
        has_installments=payload.has_installments,
        installment_count=payload.installment_count,
        base_currency=settings.base_currency,
    )
    _check_document(blob_store, payload.document)
    channel, channel_detail = channel_to_columns(payload.payment_channel)
    document = payload.document
    return {
        "expense_date": payload.expense_date.isoformat(),
        "reason": payload.reason,
        "detail": payload.detail,
        "amount": payload.amount,
        "currency": derived.currency,
        "exchange_rate": derived.exchange_rate,
        "amount_in_base_currency": derived.amount_in_base_currency,
        "has_installments": int(derived.has_installments),
        "installment_count": derived.installment_count,
        "total_payable": derived.total_payable,
        "payment_channel": channel,
        "payment_channel_detail": channel_detail,
        "document_url": document.url if document else None,
        "document_name": document.filename if document else None,
        "document_type": document.content_type if document else None,
    }


def submit_expense(
    db: Database,
    settings: Settings,
    blob_store: BlobStore,
    caller: Caller,
    payload: ExpenseIn,
) -> ExpenseOut:
    fields = build_expense_fields(payload, settings, blob_store)
    expense_id = db.create_expense(caller.user_id, fields)
    logger.info(
        "expense %s created: %s %s -> %s %s",
        expense_id,
        fields["amount"],
        fields["currency"],
        fields["total_payable"],
        settings.base_currency,
    )
    row = db.get_expense(expense_id)
    if row is None:
        raise RuntimeError("expense not found after insert")
    return ExpenseOut.from_row(row)


def update_expense(
    db: Database,
    settings: Settings,
    blob_store: BlobStore,
    caller: Caller,
    expense_id: int,
    payload: ExpenseIn,
) -> ExpenseOut:
    """Replace an owned expense; id and owner never change."""
    existing = db.get_expense(expense_id)
    # Someone else's expense reads as missing.
    if existing is None or existing["owner_user_id"] != caller.user_id:
        raise ExpenseNotFound()
    fields = build_expense_fields(payload, settings, blob_store)
    db.update_expense(expense_id, fields)
    logger.info("expense %s replaced", expense_id)
    row = db.get_expense(expense_id)
    if row is None:
        raise ExpenseNotFound()
    return ExpenseOut.from_row(row)


def list_own_expenses(db: Database, caller: Caller) -> List[ExpenseOut]:
    return [ExpenseOut.from_row(r) for r in db.list_expenses_by_owner(caller.user_id)]


def list_all_expenses(db: Database, caller: Caller) -> List[ExpenseWithOwner]:
    require_admin(db, caller.user_id, "list_all_expenses")
    return [ExpenseWithOwner.from_row(r) for r in db.list_all_expenses()]


def backfill_base_amounts(db: Database, settings: Settings, caller: Caller) -> int:
    """Fill ``amount_in_base_currency`` on rows that predate it (NULL or 0).

    Non-base rows with a positive exchange rate get ``amount * rate``; every
    other row gets its original amount.
    """
    require_admin(db, caller.user_id, "backfill_base_amounts")
    updates = []
    for row in db.list_expenses_missing_base_amount():
        rate = row.get("exchange_rate")
        if row["currency"] != settings.base_currency and rate is not None and rate > 0:
            value = scale(row["amount"], rate)
        else:
            value = round2(row["amount"])
        updates.append((row["id"], value))
    touched = db.set_base_amounts(updates)
    logger.info("backfilled base amounts on %s expenses", touched)
    return touched
