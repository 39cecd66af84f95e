from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRegisterIn(BaseModel):
    email: str
    display_name: str
    sector: str
    card_last4: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("display_name", "sector", "card_last4")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class LoginIn(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class VerifyCodeIn(BaseModel):
    email: str
    code: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserOut(BaseModel):
    """Public user view. The credential hash is never part of it."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: str
    sector: str
    card_last4: str
    is_admin: bool
    is_code_verified: bool
    created_at: datetime

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserOut":
        return cls(
            id=row["id"],
            email=row["email"],
            display_name=row["display_name"],
            sector=row["sector"],
            card_last4=row["card_last4"],
            is_admin=bool(row["is_admin"]),
            is_code_verified=bool(row["is_code_verified"]),
            created_at=row["created_at"],
        )


class LoginOut(BaseModel):
    user: UserOut
    requires_code_verification: bool
