from typing import List

from fastapi import APIRouter, Depends

from expense_desk.core.errors import CallerNotFound
from expense_desk.db.dal import Database
from expense_desk.models.user import UserOut
from expense_desk.services.access import require_admin
from expense_desk.services.caller import Caller, get_caller, get_db

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserOut], summary="List all users (admin)")
async def list_users(
    caller: Caller = Depends(get_caller), db: Database = Depends(get_db)
):
    require_admin(db, caller.user_id, "list_users")
    return [UserOut.from_row(r) for r in db.list_users()]


@router.get("/me", response_model=UserOut, summary="Current caller")
async def me(caller: Caller = Depends(get_caller), db: Database = Depends(get_db)):
    row = db.get_user(caller.user_id)
    if row is None:
        raise CallerNotFound()
    return UserOut.from_row(row)
