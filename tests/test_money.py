from decimal import Decimal

import pytest

from ledgerbook_app.money import format_minor_units, from_minor_units, is_valid_amount, to_minor_units


@pytest.mark.parametrize(
    "amount, cents",
    [
        (Decimal("100.50"), 10050),
        ("1300.00", 130000),
        (100, 10000),
        (1.235, 124),
        (Decimal("0.005"), 1),
        (Decimal("-1.235"), -124),
    ],
)
def test_to_minor_units_rounds_half_away_from_zero(amount, cents):
    assert to_minor_units(amount) == cents


def test_from_minor_units_is_exact():
    assert from_minor_units(10050) == Decimal("100.50")
    assert str(from_minor_units(5)) == "0.05"


def test_to_minor_units_rejects_garbage():
    with pytest.raises(ValueError):
        to_minor_units("abc")
    with pytest.raises(ValueError):
        to_minor_units(float("inf"))
    with pytest.raises(TypeError):
        to_minor_units(True)


@pytest.mark.parametrize(
    "value, ok",
    [(0, True), (Decimal("12.34"), True), (1.5, True), (-1, False), (float("nan"), False),
     (True, False), ("12", False), (None, False)],
)
def test_is_valid_amount(value, ok):
    assert is_valid_amount(value) is ok


def test_format_minor_units_groups_thousands():
    assert format_minor_units(123456) == "INR 1,234.56"
    assert format_minor_units(-50000, "USD") == "-USD 500.00"


@pytest.mark.parametrize("amount", ["0", "0.01", "0.1", "1", "19.99", "100.5", "1300.00", "999999999999999.99"])
def test_grid_aligned_amounts_survive_the_round_trip(amount):
    value = Decimal(amount)
    assert from_minor_units(to_minor_units(value)) == round(value, 2)


def test_out_of_range_amount_is_a_value_error():
    # exceeds the decimal context precision once scaled to cents
    with pytest.raises(ValueError):
        to_minor_units("1e30")
