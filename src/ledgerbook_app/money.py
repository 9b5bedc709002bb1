# src/ledgerbook_app/money.py
"""
Conversion between decimal currency amounts and integer minor units.

Everything past this module works on integer cents. Rounding happens
exactly once, here, when a decimal amount enters the system.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Amount = Union[Decimal, int, float, str]

MINOR_UNITS = 100
# largest value a 64-bit integer column holds
MAX_MINOR_UNITS = 2**63 - 1
# largest decimal amount accepted at the boundaries
MAX_AMOUNT = Decimal("999999999999999.99")
_CENT = Decimal("0.01")


def _as_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, bool):
        raise TypeError("amount must be numeric, got bool")
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # str() keeps the literal the caller typed (1.235 -> "1.235")
        return Decimal(str(amount))
    try:
        return Decimal(amount)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"not a decimal amount: {amount!r}") from e


def to_minor_units(amount: Amount) -> int:
    """Scale to cents, rounding half away from zero: 1.235 -> 124."""
    value = _as_decimal(amount)
    if not value.is_finite():
        raise ValueError(f"amount must be finite, got {amount!r}")
    try:
        return int((value * MINOR_UNITS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"amount out of range: {amount!r}") from e


def from_minor_units(cents: int) -> Decimal:
    """Exact inverse for grid-aligned values: 10050 -> Decimal('100.50')."""
    return (Decimal(cents) / MINOR_UNITS).quantize(_CENT)


def is_valid_amount(amount: object) -> bool:
    """True for finite, non-negative numbers. Bools and strings are rejected."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return False
    try:
        value = _as_decimal(amount)
    except ValueError:
        return False
    return value.is_finite() and value >= 0


def format_minor_units(cents: int, currency: str = "INR") -> str:
    """Display helper for the CLI: 123456 -> 'INR 1,234.56'."""
    value = from_minor_units(cents)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency} {abs(value):,.2f}"


__all__ = [
    "MINOR_UNITS",
    "MAX_MINOR_UNITS",
    "MAX_AMOUNT",
    "to_minor_units",
    "from_minor_units",
    "is_valid_amount",
    "format_minor_units",
]
