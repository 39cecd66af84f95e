"""Registration, login and one-time code verification."""

from __future__ import annotations

import hmac
import logging
import re

from expense_desk.core.config import Settings
from expense_desk.core.errors import (
    InvalidCredentials,
    RegistrationError,
    UserNotFound,
    VerificationFailed,
)
from expense_desk.db.dal import Database
from expense_desk.models.user import LoginIn, LoginOut, UserOut, UserRegisterIn, VerifyCodeIn
from expense_desk.services.passwords import hash_password, verify_password

logger = logging.getLogger("app.accounts")

_CARD_LAST4_RE = re.compile(r"^\d{4}$")


def register_user(db: Database, settings: Settings, payload: UserRegisterIn) -> UserOut:
    domain = settings.allowed_email_domain.lower().lstrip("@")
    if not payload.email.endswith("@" + domain):
        raise RegistrationError("email domain not allowed")
    if not all(
        (payload.email, payload.display_name, payload.sector, payload.card_last4, payload.password)
    ):
        raise RegistrationError("all fields are required")
    if len(payload.password) < settings.password_min_length:
        raise RegistrationError(
            f"password must be at least {settings.password_min_length} characters"
        )
    if not _CARD_LAST4_RE.match(payload.card_last4):
        raise RegistrationError("card_last4 must be exactly 4 digits")
    if db.get_user_by_email(payload.email) is not None:
        raise RegistrationError("this email is already registered")

    user_id = db.create_user(
        email=payload.email,
        display_name=payload.display_name,
        sector=payload.sector,
        card_last4=payload.card_last4,
        password_hash=hash_password(payload.password, settings.bcrypt_rounds),
    )
    logger.info("registered user %s", user_id)
    return UserOut.from_row(db.get_user(user_id))  # type: ignore[arg-type]


def login(db: Database, payload: LoginIn) -> LoginOut:
    row = db.get_user_by_email(payload.email)
    if row is None or not verify_password(payload.password, row.get("password_hash")):
        raise InvalidCredentials()
    user = UserOut.from_row(row)
    return LoginOut(user=user, requires_code_verification=not user.is_code_verified)


def verify_code(db: Database, settings: Settings, payload: VerifyCodeIn) -> UserOut:
    if not hmac.compare_digest(payload.code.encode("utf-8"), settings.verification_code.encode("utf-8")):
        raise VerificationFailed()
    row = db.get_user_by_email(payload.email)
    if row is None:
        raise UserNotFound()
    if db.mark_code_verified(row["id"]):
        logger.info("user %s verified", row["id"])
    return UserOut.from_row(db.get_user(row["id"]))  # type: ignore[arg-type]
