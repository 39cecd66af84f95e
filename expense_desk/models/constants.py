"""Domain constants and enumerations for validation.

Currency codes are the defaults; the effective set comes from settings
(``supported_currencies``) so deployments can extend it.
"""

from typing import Set

BASE_CURRENCY: str = "ARS"
CURRENCIES: Set[str] = {"ARS", "USD", "EUR", "BRL", "CLP"}
MIN_INSTALLMENTS: int = 2
PERIOD_FORMAT: str = "%Y-%m"
