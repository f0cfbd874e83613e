"""Presentation helpers.

The calculators never round. These are the only places a value is rounded,
always half away from zero.
"""
from decimal import ROUND_HALF_UP, Decimal

from paycalc import validation

_CENT = Decimal("0.01")


def _half_up(value, places: int = 0) -> Decimal:
    return Decimal(repr(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def round_cents(amount) -> float:
    """Round a money amount to the nearest cent."""
    amount = validation.finite(amount, "amount")
    return float(Decimal(repr(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def round_dollars(amount) -> float:
    amount = validation.finite(amount, "amount")
    return float(_half_up(amount))


def format_currency(amount) -> str:
    """Whole dollars with thousands separators, e.g. ``$1,234`` or ``-$1,234``.

    Amounts of a million or more are shortened to ``$1.00M``.
    """
    amount = validation.finite(amount, "amount")
    dollars = int(_half_up(amount))
    sign = "-" if dollars < 0 else ""
    dollars = abs(dollars)
    if dollars >= 1_000_000:
        return f"{sign}${dollars / 1_000_000:.2f}M"
    return f"{sign}${dollars:,}"


def format_percent(ratio, decimals: int = 0) -> str:
    """Format a ratio (``0.12``) as a percentage (``12%``)."""
    ratio = validation.finite(ratio, "ratio")
    # adding zero drops the sign from a rounded "-0"
    return f"{_half_up(ratio * 100, decimals) + 0:f}%"
