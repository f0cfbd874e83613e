import pytest

from paycalc.exceptions import InvalidInputError
from paycalc.utils import format_currency, format_percent, round_cents, round_dollars


@pytest.mark.parametrize(
    "amount,expected",
    [
        (1234.0, "$1,234"),
        (1000000.0, "$1.00M"),
        (2345678.0, "$2.35M"),
        (50.0, "$50"),
        (999.5, "$1,000"),
        (0.49, "$0"),
        (-1234.4, "-$1,234"),
        (-2.5, "-$3"),
        (999999.5, "$1.00M"),
    ],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


@pytest.mark.parametrize(
    "ratio,decimals,expected",
    [
        (0.12, 0, "12%"),
        (0.305, 0, "31%"),
        (0.3333, 1, "33.3%"),
        (0.0, 0, "0%"),
        (-0.001, 0, "0%"),
        (1.5, 2, "150.00%"),
    ],
)
def test_format_percent(ratio, decimals, expected):
    assert format_percent(ratio, decimals) == expected


def test_round_cents_half_away_from_zero():
    assert round_cents(2.675) == 2.68
    assert round_cents(-2.675) == -2.68
    assert round_cents(496.6612) == 496.66


def test_round_dollars_half_away_from_zero():
    assert round_dollars(600.5) == 601
    assert round_dollars(-600.5) == -601
    assert round_dollars(599.49) == 599


def test_formatting_rejects_non_finite():
    with pytest.raises(InvalidInputError):
        format_currency(float("nan"))
    with pytest.raises(InvalidInputError):
        format_percent(float("inf"))
