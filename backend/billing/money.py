"""
Decimal helpers for local-currency (Bs.) and USD amounts.
Every stored amount is quantized to cents with ROUND_HALF_UP.
"""
from decimal import Decimal, ROUND_HALF_UP


TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(v) -> Decimal:
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v if v not in (None, "") else "0"))


def to_money(v) -> Decimal:
    return to_decimal(v).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def usd_to_local(amount_usd, rate) -> Decimal:
    """Convert a USD face value to local currency at `rate`, rounded to cents."""
    return to_money(to_decimal(amount_usd) * to_decimal(rate))
