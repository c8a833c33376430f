from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

MoneyLike = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Differences up to one penny are rounding noise, not a discrepancy
TOLERANCE = Decimal("0.01")


def to_money(value: MoneyLike) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: MoneyLike) -> int:
    return int(to_money(amount) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def amounts_match(a: MoneyLike, b: MoneyLike, tolerance: Decimal = TOLERANCE) -> bool:
    return abs(to_money(a) - to_money(b)) <= tolerance


def format_money(amount: MoneyLike, symbol: str = "£") -> str:
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):.2f}"
