from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from expense_desk.core.errors import InvalidExchangeRate, InvalidInstallmentCount, ValidationFailure
from expense_desk.models.constants import BASE_CURRENCY, MIN_INSTALLMENTS
from expense_desk.services.money import round2, scale

"""Base-currency conversion and installment totals.

Both rules are pure and are the only place the derived expense amounts are
computed, so submission, edits and the legacy backfill agree on rounding:

    amount_in_base_currency = amount                  (base currency)
                            = amount * exchange_rate  (any other currency)
    total_payable = amount_in_base_currency * installment_count  (installments)
                  = amount_in_base_currency                      (single payment)
"""


@dataclass(frozen=True)
class DerivedAmounts:
    currency: str
    exchange_rate: Optional[float]
    amount_in_base_currency: float
    has_installments: bool
    installment_count: Optional[int]
    total_payable: float


def to_base_currency(
    amount: float,
    currency: str,
    exchange_rate: Optional[float],
    base_currency: str = BASE_CURRENCY,
) -> float:
    """Convert ``amount`` to the base currency.

    The exchange rate is not consulted for base-currency amounts. Any other
    currency needs a finite rate strictly greater than zero.
    """
    if not math.isfinite(amount):
        raise ValidationFailure("amount must be a finite number")
    if currency.upper() == base_currency.upper():
        return round2(amount)
    if exchange_rate is None or not math.isfinite(exchange_rate) or exchange_rate <= 0:
        raise InvalidExchangeRate(
            f"exchange_rate must be greater than zero for {currency.upper()} expenses"
        )
    return scale(amount, exchange_rate)


def installment_total(
    base_amount: float, has_installments: bool, installment_count: Optional[int]
) -> float:
    if not has_installments:
        return round2(base_amount)
    if (
        installment_count is None
        or isinstance(installment_count, bool)
        or not isinstance(installment_count, int)
        or installment_count < MIN_INSTALLMENTS
    ):
        raise InvalidInstallmentCount(
            f"installment_count must be an integer of at least {MIN_INSTALLMENTS}"
        )
    return scale(base_amount, installment_count)


def derive_amounts(
    amount: float,
    currency: str,
    exchange_rate: Optional[float],
    has_installments: bool,
    installment_count: Optional[int],
    base_currency: str = BASE_CURRENCY,
) -> DerivedAmounts:
    currency = currency.upper()
    base_amount = to_base_currency(amount, currency, exchange_rate, base_currency)
    total = installment_total(base_amount, has_installments, installment_count)
    is_base = currency == base_currency.upper()
    return DerivedAmounts(
        currency=currency,
        exchange_rate=None if is_base else float(exchange_rate),  # type: ignore[arg-type]
        amount_in_base_currency=base_amount,
        has_installments=has_installments,
        installment_count=installment_count if has_installments else None,
        total_payable=total,
    )
