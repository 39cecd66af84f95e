"""Per-user report assembly.

The report is a plain structured value: user identity, the period actually
covered, the statistics block and the expenses included. Rendering it
(HTML, PDF, print views) is left to the consumer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from expense_desk.core.config import Settings
from expense_desk.core.errors import UserNotFound
from expense_desk.db.dal import Database
from expense_desk.models.expense import ExpenseOut
from expense_desk.models.user import UserOut
from expense_desk.services.access import require_self_or_admin
from expense_desk.services.aggregation import (
    ExpenseStatistics,
    PeriodSelection,
    ReportScope,
    compute_statistics,
    select_period,
)
from expense_desk.services.caller import Caller

logger = logging.getLogger("app.reports")


@dataclass(frozen=True)
class UserReport:
    user: UserOut
    period_label: str
    scope: ReportScope
    statistics: ExpenseStatistics
    expenses: List[ExpenseOut]


def assemble_report(
    user: UserOut, selection: PeriodSelection, statistics: ExpenseStatistics
) -> UserReport:
    return UserReport(
        user=user,
        period_label=selection.scope.label,
        scope=selection.scope,
        statistics=statistics,
        expenses=list(selection.expenses),  # type: ignore[arg-type]
    )


def generate_user_report(
    db: Database,
    settings: Settings,
    caller: Caller,
    target_user_id: int,
    period: Optional[str] = None,
) -> UserReport:
    # Gate first: a refused caller learns nothing about the target.
    require_self_or_admin(db, caller.user_id, target_user_id, "generate_user_report")
    row = db.get_user(target_user_id)
    if row is None:
        raise UserNotFound()
    expenses = [ExpenseOut.from_row(r) for r in db.list_expenses_by_owner(target_user_id)]
    selection = select_period(expenses, period)
    statistics = compute_statistics(selection.expenses, top_n=settings.top_expenses_limit)
    if selection.scope.fallback:
        logger.info(
            "report for user %s widened to all periods: nothing in %s",
            target_user_id,
            selection.scope.requested_period,
        )
    return assemble_report(UserOut.from_row(row), selection, statistics)
