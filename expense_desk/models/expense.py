from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebChannel(BaseModel):
    """Purchase made online; ``url`` is the shop address.

    Stored rows may lack the address; new submissions must carry it
    (see ``ExpenseIn``).
    """

    kind: Literal["web"] = "web"
    url: Optional[str] = Field(None, min_length=1)


class InPersonChannel(BaseModel):
    kind: Literal["in_person"] = "in_person"
    store_name: Optional[str] = Field(None, min_length=1)


class OtherChannel(BaseModel):
    kind: Literal["other"] = "other"
    comment: Optional[str] = None


PaymentChannel = Annotated[
    Union[WebChannel, InPersonChannel, OtherChannel], Field(discriminator="kind")
]


def channel_to_columns(channel: Union[WebChannel, InPersonChannel, OtherChannel]) -> Tuple[str, Optional[str]]:
    if isinstance(channel, WebChannel):
        return "web", channel.url
    if isinstance(channel, InPersonChannel):
        return "in_person", channel.store_name
    return "other", channel.comment


def channel_from_columns(kind: str, detail: Optional[str]) -> Union[WebChannel, InPersonChannel, OtherChannel]:
    detail = detail or None
    if kind == "web":
        return WebChannel(url=detail)
    if kind == "in_person":
        return InPersonChannel(store_name=detail)
    return OtherChannel(comment=detail)


class DocumentRef(BaseModel):
    """Locator of a file held by the blob store, never the bytes themselves."""

    url: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    content_type: str = Field(..., min_length=1)


class ExpenseIn(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    expense_date: date
    reason: str = Field(..., min_length=1, max_length=200)
    detail: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    currency: str
    exchange_rate: Optional[float] = None
    has_installments: bool = False
    installment_count: Optional[int] = None
    payment_channel: PaymentChannel
    document: Optional[DocumentRef] = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("currency is required")
        return v

    @field_validator("reason", "detail")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be blank")
        return v.strip()

    @field_validator("payment_channel")
    @classmethod
    def channel_detail_required(cls, v):
        if isinstance(v, WebChannel) and not v.url:
            raise ValueError("url is required for web purchases")
        if isinstance(v, InPersonChannel) and not v.store_name:
            raise ValueError("store_name is required for in-person purchases")
        return v


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_user_id: int
    expense_date: date
    loaded_at: datetime
    updated_at: datetime
    reason: str
    detail: str
    amount: float
    currency: str
    exchange_rate: Optional[float] = None
    amount_in_base_currency: Optional[float] = None
    has_installments: bool
    installment_count: Optional[int] = None
    total_payable: float
    payment_channel: PaymentChannel
    document: Optional[DocumentRef] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ExpenseOut":
        return cls(**_expense_fields(row))


class OwnerIdentity(BaseModel):
    id: int
    email: str
    display_name: str
    sector: str
    card_last4: str


class ExpenseWithOwner(ExpenseOut):
    owner: OwnerIdentity

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ExpenseWithOwner":
        owner = OwnerIdentity(
            id=row["owner_user_id"],
            email=row["owner_email"],
            display_name=row["owner_display_name"],
            sector=row["owner_sector"],
            card_last4=row["owner_card_last4"],
        )
        return cls(owner=owner, **_expense_fields(row))


def _expense_fields(row: Dict[str, Any]) -> Dict[str, Any]:
    document = None
    if row.get("document_url"):
        document = DocumentRef(
            url=row["document_url"],
            filename=row.get("document_name") or row["document_url"].rsplit("/", 1)[-1],
            content_type=row.get("document_type") or "application/octet-stream",
        )
    return {
        "id": row["id"],
        "owner_user_id": row["owner_user_id"],
        "expense_date": row["expense_date"],
        "loaded_at": row["loaded_at"],
        "updated_at": row["updated_at"],
        "reason": row["reason"],
        "detail": row["detail"],
        "amount": row["amount"],
        "currency": row["currency"],
        "exchange_rate": row.get("exchange_rate"),
        "amount_in_base_currency": row.get("amount_in_base_currency"),
        "has_installments": bool(row["has_installments"]),
        "installment_count": row.get("installment_count"),
        "total_payable": row["total_payable"],
        "payment_channel": channel_from_columns(
            row["payment_channel"], row.get("payment_channel_detail")
        ),
        "document": document,
    }
