"""Monthly card statement files attached to users by administrators."""

from __future__ import annotations

import logging
from typing import List

from expense_desk.core.errors import DocumentNotFound, TargetUserNotFound
from expense_desk.db.dal import Database
from expense_desk.models.card_summary import CardSummaryIn, CardSummaryOut
from expense_desk.services.access import require_admin, require_self_or_admin
from expense_desk.services.blob_store import BlobStore
from expense_desk.services.caller import Caller

logger = logging.getLogger("app.card_summaries")


def upload_card_summary(
    db: Database, blob_store: BlobStore, caller: Caller, payload: CardSummaryIn
) -> CardSummaryOut:
    require_admin(db, caller.user_id, "upload_card_summary")
    if db.get_user(payload.user_id) is None:
        raise TargetUserNotFound()
    if not blob_store.exists(payload.file.url):
        raise DocumentNotFound()
    summary_id = db.create_card_summary(
        owner_user_id=payload.user_id,
        period=payload.period,
        file_url=payload.file.url,
        file_name=payload.file.filename,
        file_type=payload.file.content_type,
        description=payload.description,
    )
    logger.info("card summary %s stored for user %s (%s)", summary_id, payload.user_id, payload.period)
    row = db.get_card_summary(summary_id)
    if row is None:
        raise RuntimeError("card summary not found after insert")
    return CardSummaryOut.from_row(row)


def list_card_summaries(db: Database, caller: Caller, user_id: int) -> List[CardSummaryOut]:
    require_self_or_admin(db, caller.user_id, user_id, "list_card_summaries")
    if user_id != caller.user_id and db.get_user(user_id) is None:
        raise TargetUserNotFound()
    return [CardSummaryOut.from_row(r) for r in db.list_card_summaries(user_id)]


def delete_card_summary(db: Database, caller: Caller, summary_id: int) -> None:
    require_admin(db, caller.user_id, "delete_card_summary")
    db.delete_card_summary(summary_id)
    logger.info("card summary %s deleted", summary_id)
