"""Calendar period (``YYYY-MM``) helpers shared by reports and card summaries."""

from __future__ import annotations

from datetime import date, datetime
from typing import Tuple

from .constants import PERIOD_FORMAT


def parse_period(value: str) -> Tuple[int, int]:
    """Return ``(year, month)`` for a ``YYYY-MM`` label; ValueError otherwise."""
    try:
        parsed = datetime.strptime(value.strip(), PERIOD_FORMAT)
    except (AttributeError, ValueError):
        raise ValueError("period must use the YYYY-MM format") from None
    return parsed.year, parsed.month


def in_period(day: date, period: Tuple[int, int]) -> bool:
    return (day.year, day.month) == period
