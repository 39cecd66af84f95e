"""Request-scoped caller identity.

Every operation receives an explicit ``Caller`` built from the ``X-User-Id``
header. The header only names the user; the administrator flag is resolved
from the database for each request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request

from expense_desk.core.config import Settings
from expense_desk.core.errors import CallerNotFound
from expense_desk.core.logging import caller_id_ctx
from expense_desk.db.dal import Database
from expense_desk.services.blob_store import BlobStore, LocalBlobStore


@dataclass(frozen=True)
class Caller:
    user_id: int
    is_admin: bool


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(settings: Settings = Depends(get_app_settings)) -> Database:
    return Database(settings.db_path)


def resolve_caller(db: Database, user_id: Optional[int]) -> Caller:
    if user_id is None:
        raise CallerNotFound()
    user = db.get_user(user_id)
    if user is None:
        raise CallerNotFound()
    caller_id_ctx.set(user_id)
    return Caller(user_id=user_id, is_admin=bool(user["is_admin"]))


async def get_caller(
    request: Request,
    x_user_id: Optional[int] = Header(None, alias="X-User-Id"),
    db: Database = Depends(get_db),
) -> Caller:
    caller = resolve_caller(db, x_user_id)
    # The middleware reads this back for its access line.
    request.state.caller_id = caller.user_id
    return caller


def get_blob_store(settings: Settings = Depends(get_app_settings)) -> BlobStore:
    return LocalBlobStore(settings.uploads_dir, settings.public_uploads_base_url)  # type: ignore[arg-type]


__all__ = [
    "Caller",
    "get_app_settings",
    "get_blob_store",
    "get_caller",
    "get_db",
    "resolve_caller",
]
