from typing import List

from fastapi import APIRouter, Depends

from expense_desk.core.config import Settings
from expense_desk.db.dal import Database
from expense_desk.models.expense import ExpenseIn, ExpenseOut, ExpenseWithOwner
from expense_desk.services import ledger
from expense_desk.services.blob_store import BlobStore
from expense_desk.services.caller import (
    Caller,
    get_app_settings,
    get_blob_store,
    get_caller,
    get_db,
)

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", response_model=ExpenseOut, status_code=201, summary="Submit an expense")
async def create_expense(
    payload: ExpenseIn,
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    blob_store: BlobStore = Depends(get_blob_store),
):
    return ledger.submit_expense(db, settings, blob_store, caller, payload)


@router.get(
    "", response_model=List[ExpenseOut], summary="List the caller's expenses (newest first)"
)
async def list_own_expenses(
    caller: Caller = Depends(get_caller), db: Database = Depends(get_db)
):
    return ledger.list_own_expenses(db, caller)


@router.get(
    "/all",
    response_model=List[ExpenseWithOwner],
    summary="List every expense with its owner (admin)",
)
async def list_all_expenses(
    caller: Caller = Depends(get_caller), db: Database = Depends(get_db)
):
    return ledger.list_all_expenses(db, caller)


@router.put(
    "/{expense_id}", response_model=ExpenseOut, summary="Replace one of the caller's expenses"
)
async def replace_expense(
    expense_id: int,
    payload: ExpenseIn,
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Recompute every derived amount from the new submission.

    Only the owner may edit; other callers get a 404 as if the expense did
    not exist.
    """
    return ledger.update_expense(db, settings, blob_store, caller, expense_id, payload)
