from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from .expense import DocumentRef
from .period import parse_period


class CardSummaryIn(BaseModel):
    user_id: int
    period: str
    file: DocumentRef
    description: Optional[str] = None

    @field_validator("period")
    @classmethod
    def valid_period(cls, v: str) -> str:
        parse_period(v)
        return v.strip()

    @field_validator("description")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class CardSummaryOut(BaseModel):
    id: int
    owner_user_id: int
    period: str
    file: DocumentRef
    description: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CardSummaryOut":
        return cls(
            id=row["id"],
            owner_user_id=row["owner_user_id"],
            period=row["period"],
            file=DocumentRef(
                url=row["file_url"],
                filename=row["file_name"],
                content_type=row["file_type"],
            ),
            description=row.get("description"),
            created_at=row["created_at"],
        )
