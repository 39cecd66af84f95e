from fastapi import APIRouter, Depends

from expense_desk.core.config import Settings
from expense_desk.db.dal import Database
from expense_desk.models.user import LoginIn, LoginOut, UserOut, UserRegisterIn, VerifyCodeIn
from expense_desk.services import accounts
from expense_desk.services.caller import get_app_settings, get_db

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register", response_model=UserOut, status_code=201, summary="Register an employee"
)
async def register(
    payload: UserRegisterIn,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return accounts.register_user(db, settings, payload)


@router.post("/login", response_model=LoginOut, summary="Check credentials")
async def login(payload: LoginIn, db: Database = Depends(get_db)):
    """Return the user and whether the one-time code step is still pending."""
    return accounts.login(db, payload)


@router.post(
    "/verify-code", response_model=UserOut, summary="Confirm the one-time access code"
)
async def verify_code(
    payload: VerifyCodeIn,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    return accounts.verify_code(db, settings, payload)
