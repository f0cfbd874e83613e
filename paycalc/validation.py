"""Input checks applied by the public entry points before dispatch.

Both engines only ever see values that passed through here, so an invalid
input is rejected the same way whichever implementation would have run.
"""
from __future__ import annotations

import math
from datetime import date
from numbers import Real
from typing import Optional, Union

from paycalc.exceptions import InvalidInputError
from paycalc.presets import MAX_DATE, MIN_DATE

DateLike = Union[date, str]

_MIN_DATE = date(*MIN_DATE)
_MAX_DATE = date(*MAX_DATE)


def finite(value, field: str) -> float:
    """Return ``value`` as a float, rejecting booleans, NaN and infinities."""

    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(field, value, "must be a number")
    x = float(value)
    if math.isnan(x) or math.isinf(x):
        raise InvalidInputError(field, value, "must be finite")
    return x


def money(value, field: str) -> float:
    """A non-negative money amount."""

    x = finite(value, field)
    if x < 0:
        raise InvalidInputError(field, value, "must not be negative")
    return x


def positive(value, field: str) -> float:
    x = finite(value, field)
    if x <= 0:
        raise InvalidInputError(field, value, "must be greater than 0")
    return x


def rate(value, field: str = "annual_rate_percent") -> float:
    """An annual percentage rate; 0 is a valid zero-interest loan."""

    x = finite(value, field)
    if x < 0:
        raise InvalidInputError(field, value, "must not be negative")
    if x > 100:
        raise InvalidInputError(field, value, "must be at most 100")
    return x


def percent(value, field: str, upper: float = 100.0, upper_inclusive: bool = True) -> float:
    x = finite(value, field)
    if x < 0:
        raise InvalidInputError(field, value, "must not be negative")
    if x > upper or (x == upper and not upper_inclusive):
        bound = "at most" if upper_inclusive else "below"
        raise InvalidInputError(field, value, f"must be {bound} {upper:g}")
    return x


def term(value, field: str = "term_months", maximum: Optional[int] = None) -> int:
    """A whole number of periods greater than zero."""

    if isinstance(value, bool):
        raise InvalidInputError(field, value, "must be a whole number")
    if isinstance(value, Real) and not isinstance(value, int):
        x = finite(value, field)
        if not x.is_integer():
            raise InvalidInputError(field, value, "must be a whole number")
        value = int(x)
    if not isinstance(value, int):
        raise InvalidInputError(field, value, "must be a whole number")
    if value <= 0:
        raise InvalidInputError(field, value, "must be greater than 0")
    if maximum is not None and value > maximum:
        raise InvalidInputError(field, value, f"must be at most {maximum}")
    return value


def calendar_date(value: DateLike, field: str) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string within 1900-2100."""

    if isinstance(value, str):
        try:
            value = date.fromisoformat(value)
        except ValueError:
            raise InvalidInputError(field, value, "must be an ISO date (YYYY-MM-DD)") from None
    elif not isinstance(value, date):
        raise InvalidInputError(field, value, "must be a date")
    # datetime is a date subclass; only the calendar day matters here
    value = date(value.year, value.month, value.day)
    if value < _MIN_DATE or value > _MAX_DATE:
        raise InvalidInputError(field, value.isoformat(), "must be between 1900-01-01 and 2100-12-31")
    return value
