from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from expense_desk.db.dal import Database
from expense_desk.models.card_summary import CardSummaryIn, CardSummaryOut
from expense_desk.services import card_summaries
from expense_desk.services.blob_store import BlobStore
from expense_desk.services.caller import Caller, get_blob_store, get_caller, get_db

router = APIRouter(prefix="/card-summaries", tags=["card-summaries"])


@router.post(
    "",
    response_model=CardSummaryOut,
    status_code=201,
    summary="Attach a card statement to a user (admin)",
)
async def create_card_summary(
    payload: CardSummaryIn,
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    return card_summaries.upload_card_summary(db, blob_store, caller, payload)


@router.get(
    "",
    response_model=List[CardSummaryOut],
    summary="List card statements, newest period first",
)
async def list_card_summaries(
    user_id: Optional[int] = Query(None, description="Defaults to the caller"),
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
):
    target = user_id if user_id is not None else caller.user_id
    return card_summaries.list_card_summaries(db, caller, target)


@router.delete(
    "/{summary_id}", status_code=204, summary="Delete a card statement (admin)"
)
async def delete_card_summary(
    summary_id: int,
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
):
    card_summaries.delete_card_summary(db, caller, summary_id)
    return None
