from fastapi import APIRouter, Depends
from pydantic import BaseModel

from expense_desk.core.config import Settings
from expense_desk.db.dal import Database
from expense_desk.services import ledger
from expense_desk.services.caller import Caller, get_app_settings, get_caller, get_db

router = APIRouter(prefix="/admin", tags=["admin"])


class BackfillResult(BaseModel):
    updated: int


@router.post(
    "/backfill-base-amounts",
    response_model=BackfillResult,
    summary="Fill missing base-currency amounts on legacy expenses",
)
async def backfill_base_amounts(
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return BackfillResult(updated=ledger.backfill_base_amounts(db, settings, caller))
