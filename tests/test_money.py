from decimal import Decimal

import pytest

from routecost.exceptions import ValidationError
from routecost.utils.money import round_hours, round_money, round_unit_cost, to_decimal, to_optional_decimal


@pytest.mark.parametrize("raw, expected", [
    ("12.50", Decimal("12.50")),
    (" 3 ", Decimal("3")),
    (7, Decimal("7")),
    (0.1, Decimal("0.1")),
    (Decimal("1E+2"), Decimal("100")),
])
def test_to_decimal_accepts_numeric_input(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize("raw", [None, True, "abc", "", "NaN", "Infinity"])
def test_to_decimal_rejects_non_numbers(raw):
    with pytest.raises(ValidationError):
        to_decimal(raw, "price")


def test_blank_optional_is_none():
    assert to_optional_decimal("  ") is None
    assert to_optional_decimal(None) is None
    assert to_optional_decimal("4.5") == Decimal("4.5")


@pytest.mark.parametrize("amount, expected", [
    ("0.005", "0.01"),
    ("2.675", "2.68"),
    ("-1.005", "-1.01"),
    ("49.1666", "49.17"),
])
def test_money_rounds_half_up(amount, expected):
    assert round_money(Decimal(amount)) == Decimal(expected)


def test_hours_and_unit_cost_precision():
    assert round_hours(Decimal("3.27775")) == Decimal("3.2778")
    assert round_unit_cost(Decimal("0.689370005")) == Decimal("0.68937001")


@pytest.mark.parametrize("quantity, expected", [
    (1, "0.00006875"),               # small batch keeps the default 1e-8
    (1_000_000, "0.000068750"),      # seven digits -> 1e-9
    (16_000_000, "0.0000687500"),    # eight digits -> 1e-10, half-up
    (10_000_000_000, "0.0000687499500"),
])
def test_unit_cost_quantum_narrows_with_batch_size(quantity, expected):
    rounded = round_unit_cost(Decimal("0.00006874995"), quantity)
    assert rounded == Decimal(expected)
    assert rounded.as_tuple().exponent == Decimal(expected).as_tuple().exponent
