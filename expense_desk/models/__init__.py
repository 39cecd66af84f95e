"""Pydantic domain models for the expense desk service."""

from .constants import (
    BASE_CURRENCY,
    CURRENCIES,
)  # re-export
from .expense import (
    DocumentRef,
    ExpenseIn,
    ExpenseOut,
    ExpenseWithOwner,
    InPersonChannel,
    OtherChannel,
    OwnerIdentity,
    WebChannel,
)
from .user import LoginIn, LoginOut, UserOut, UserRegisterIn, VerifyCodeIn
from .card_summary import CardSummaryIn, CardSummaryOut

__all__ = [
    "BASE_CURRENCY",
    "CURRENCIES",
    "DocumentRef",
    "ExpenseIn",
    "ExpenseOut",
    "ExpenseWithOwner",
    "InPersonChannel",
    "OtherChannel",
    "OwnerIdentity",
    "WebChannel",
    "LoginIn",
    "LoginOut",
    "UserOut",
    "UserRegisterIn",
    "VerifyCodeIn",
    "CardSummaryIn",
    "CardSummaryOut",
]
