from __future__ import annotations

from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from expense_desk.core.config import Settings
from expense_desk.db.dal import Database
from expense_desk.models.expense import ExpenseOut
from expense_desk.models.user import UserOut
from expense_desk.services.aggregation import Bucket, ExpenseStatistics
from expense_desk.services.caller import Caller, get_app_settings, get_caller, get_db
from expense_desk.services.reports import UserReport, generate_user_report

router = APIRouter(prefix="/reports", tags=["reports"])


class BucketOut(BaseModel):
    count: int
    total: float


class ScopeOut(BaseModel):
    kind: Literal["period", "all"]
    requested_period: Optional[str] = None
    fallback: bool
    label: str


class StatisticsOut(BaseModel):
    total_amount: float
    total_count: int
    average_expense: float
    by_currency: Dict[str, BucketOut]
    by_channel: Dict[str, BucketOut]
    by_day: Dict[str, BucketOut]
    top_expenses: List[ExpenseOut]


class UserReportOut(BaseModel):
    user: UserOut
    period: str
    scope: ScopeOut
    statistics: StatisticsOut
    expenses: List[ExpenseOut]


def _bucket(b: Bucket) -> BucketOut:
    return BucketOut(count=b.count, total=b.total)


def _statistics_out(stats: ExpenseStatistics) -> StatisticsOut:
    return StatisticsOut(
        total_amount=stats.total_amount,
        total_count=stats.total_count,
        average_expense=stats.average_expense,
        by_currency={k: _bucket(v) for k, v in stats.by_currency.items()},
        by_channel={k: _bucket(v) for k, v in stats.by_channel.items()},
        by_day={d.isoformat(): _bucket(v) for d, v in stats.by_day.items()},
        top_expenses=list(stats.top_expenses),  # type: ignore[arg-type]
    )


def _report_out(report: UserReport) -> UserReportOut:
    scope = report.scope
    return UserReportOut(
        user=report.user,
        period=report.period_label,
        scope=ScopeOut(
            kind=scope.kind,
            requested_period=scope.requested_period,
            fallback=scope.fallback,
            label=scope.label,
        ),
        statistics=_statistics_out(report.statistics),
        expenses=report.expenses,
    )


@router.get(
    "/users/{user_id}",
    response_model=UserReportOut,
    summary="Expense report for one user (admin, or the user themself)",
)
async def user_report_endpoint(
    user_id: int,
    period: Optional[str] = Query(
        None, description="Calendar month YYYY-MM; omitted means all periods"
    ),
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Return user identity, the period actually covered, statistics and expenses.

    When the requested month has no expenses but the user has others, the
    report covers all periods and ``scope.fallback`` is true.
    """
    report = generate_user_report(db, settings, caller, user_id, period)
    return _report_out(report)
