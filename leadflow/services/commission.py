# leadflow/services/commission.py
"""
Commission arithmetic.

Amounts are handled as Decimal end to end. Floats are converted through
their string form so that 0.1 stays 0.1, and results are rounded half-up to
the currency's minor unit.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Number = Union[Decimal, int, float, str]

DEFAULT_COMMISSION_RATE = Decimal("10")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"not a monetary amount: {value!r}")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"not a monetary amount: {value!r}") from e

    if not result.is_finite():
        raise ValueError(f"not a monetary amount: {value!r}")
    return result


def quantize_money(value: Number, places: int = 2) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def calculate_commission(
    sale_amount: Number,
    rate_percent: Number = DEFAULT_COMMISSION_RATE,
    *,
    places: int = 2,
) -> Decimal:
    """Commission earned on a sale: ``sale_amount * rate_percent / 100``.

    >>> calculate_commission(Decimal("1500"))
    Decimal('150.00')
    >>> calculate_commission("0.05")
    Decimal('0.01')
    """
    amount = to_decimal(sale_amount)
    rate = to_decimal(rate_percent)

    if amount < 0:
        raise ValueError("sale_amount must not be negative")
    if rate < 0:
        raise ValueError("rate_percent must not be negative")

    return quantize_money(amount * rate / HUNDRED, places)
