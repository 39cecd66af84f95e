"""Money helpers for peso amounts.

Amounts travel as floats; arithmetic that produces a stored or reported
figure goes through Decimal and is rounded half-up to cents.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def round2(value: float) -> float:
    return float(_dec(value).quantize(CENT, rounding=ROUND_HALF_UP))


def scale(value: float, *factors: float) -> float:
    """Multiply ``value`` by each factor (exchange rate, installment count) and round."""
    result = _dec(value)
    for factor in factors:
        result *= _dec(factor)
    return float(result.quantize(CENT, rounding=ROUND_HALF_UP))


def money_sum(values: Iterable[float]) -> float:
    return float(sum((_dec(v) for v in values), Decimal("0")).quantize(CENT, rounding=ROUND_HALF_UP))
