from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Literal, Optional, Protocol, Sequence, TypeVar

from expense_desk.core.errors import InvalidPeriod
from expense_desk.models.period import in_period, parse_period
from expense_desk.services.money import money_sum, round2, scale

"""Expense statistics for a single user's (optionally month-scoped) expenses.

Scopes implemented:
    - Canonical peso total per expense (tagged fallback resolution)
    - Month selection with the all-periods fallback
    - Totals, average, per-currency / per-channel / per-day breakdowns, top N

Design notes:
    Everything here is pure: callers load rows through the DAL and hand in
    ``ExpenseOut`` models (or anything with the same attributes). The report
    service composes these pieces; tests exercise them without a database.
"""

DEFAULT_TOP_N = 5


class LedgerEntry(Protocol):
    expense_date: date
    amount: float
    currency: str
    exchange_rate: Optional[float]
    amount_in_base_currency: Optional[float]
    has_installments: bool
    installment_count: Optional[int]
    total_payable: float

    @property
    def payment_channel(self): ...  # noqa: D401


E = TypeVar("E", bound=LedgerEntry)


# ---------------- Canonical total resolution -----------------
class ResolutionSource(str, Enum):
    BASE_AMOUNT = "base_amount"
    EXCHANGE_RECOMPUTE = "exchange_recompute"
    STORED_TOTAL = "stored_total"


@dataclass(frozen=True)
class ResolvedAmount:
    value: float
    source: ResolutionSource


def _installment_factor(entry: LedgerEntry) -> int:
    count = entry.installment_count
    if entry.has_installments and count is not None and count >= 2:
        return count
    return 1


def resolve_base_total(entry: LedgerEntry) -> ResolvedAmount:
    """Return the peso-denominated total payable for one expense.

    Resolution order (first match wins):
        1. ``amount_in_base_currency`` present and non-zero, times installments.
        2. ``amount * exchange_rate`` when the rate is present and positive,
           times installments.
        3. ``total_payable`` exactly as stored. Rows predating the base-amount
           column may hold a total in their original currency here.
    """
    base = entry.amount_in_base_currency
    if base is not None and base != 0:
        return ResolvedAmount(
            scale(base, _installment_factor(entry)), ResolutionSource.BASE_AMOUNT
        )
    rate = entry.exchange_rate
    if rate is not None and rate > 0:
        return ResolvedAmount(
            scale(entry.amount, rate, _installment_factor(entry)),
            ResolutionSource.EXCHANGE_RECOMPUTE,
        )
    return ResolvedAmount(float(entry.total_payable), ResolutionSource.STORED_TOTAL)


# ---------------- Period selection -----------------
@dataclass(frozen=True)
class ReportScope:
    kind: Literal["period", "all"]
    requested_period: Optional[str]
    fallback: bool
    label: str


@dataclass(frozen=True)
class PeriodSelection:
    expenses: List[LedgerEntry]
    scope: ReportScope


def select_period(expenses: Iterable[E], period: Optional[str]) -> PeriodSelection:
    """Pick the expenses a report covers.

    With no period every expense is used. With a period, matching expenses
    (by ``expense_date``) are used; when the user has expenses but none fall
    in the period the selection widens to all of them and ``scope.fallback``
    is set so the consumer can say so. A user with no expenses at all gets
    an all-periods scope without the fallback flag.
    """
    items = list(expenses)
    if period is None or not period.strip():
        return PeriodSelection(
            expenses=items,
            scope=ReportScope(
                kind="all",
                requested_period=None,
                fallback=False,
                label=f"All periods ({len(items)} expenses)",
            ),
        )

    period = period.strip()
    try:
        target = parse_period(period)
    except ValueError as exc:
        raise InvalidPeriod(str(exc)) from None

    if not items:
        return PeriodSelection(
            expenses=items,
            scope=ReportScope(
                kind="all",
                requested_period=period,
                fallback=False,
                label="All periods (0 expenses)",
            ),
        )

    matching = [e for e in items if in_period(e.expense_date, target)]
    if matching:
        return PeriodSelection(
            expenses=matching,
            scope=ReportScope(
                kind="period",
                requested_period=period,
                fallback=False,
                label=f"{period} ({len(matching)} expenses)",
            ),
        )
    return PeriodSelection(
        expenses=items,
        scope=ReportScope(
            kind="all",
            requested_period=period,
            fallback=True,
            label=f"All periods ({len(items)} expenses) - no expenses in {period}",
        ),
    )


# ---------------- Statistics -----------------
@dataclass
class Bucket:
    count: int = 0
    total: float = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.total = money_sum((self.total, value))


@dataclass(frozen=True)
class ExpenseStatistics:
    total_amount: float
    total_count: int
    average_expense: float
    by_currency: Dict[str, Bucket] = field(default_factory=dict)
    by_channel: Dict[str, Bucket] = field(default_factory=dict)
    by_day: Dict[date, Bucket] = field(default_factory=dict)
    top_expenses: List[LedgerEntry] = field(default_factory=list)


def _channel_kind(entry: LedgerEntry) -> str:
    channel = entry.payment_channel
    return getattr(channel, "kind", None) or str(channel)


def compute_statistics(
    expenses: Sequence[E], top_n: int = DEFAULT_TOP_N
) -> ExpenseStatistics:
    """Aggregate a resolved expense set.

    ``total_amount``, the channel and day breakdowns and the top-N ranking use
    the canonical peso total from ``resolve_base_total``. The currency
    breakdown groups by original currency and therefore sums the stored
    ``total_payable`` of each row.
    """
    resolved = [(e, resolve_base_total(e).value) for e in expenses]

    total_amount = money_sum(v for _, v in resolved)
    total_count = len(resolved)
    average = round2(total_amount / total_count) if total_count else 0.0

    by_currency: Dict[str, Bucket] = {}
    by_channel: Dict[str, Bucket] = {}
    by_day: Dict[date, Bucket] = {}
    for entry, value in resolved:
        by_currency.setdefault(entry.currency, Bucket()).add(float(entry.total_payable))
        by_channel.setdefault(_channel_kind(entry), Bucket()).add(value)
        by_day.setdefault(entry.expense_date, Bucket()).add(value)

    # sorted() is stable, so ties keep their input order.
    ranked = sorted(resolved, key=lambda pair: pair[1], reverse=True)
    top = [e for e, _ in ranked[: max(top_n, 0)]]

    return ExpenseStatistics(
        total_amount=total_amount,
        total_count=total_count,
        average_expense=average,
        by_currency=dict(sorted(by_currency.items())),
        by_channel=dict(sorted(by_channel.items())),
        by_day=dict(sorted(by_day.items())),
        top_expenses=top,
    )
