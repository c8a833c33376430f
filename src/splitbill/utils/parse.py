from __future__ import annotations

import re
from decimal import Decimal

from splitbill.db.models import ReceiptItem
from splitbill.utils.money import to_money


AMOUNT_RE = re.compile(r"^(-)?\s*[£$€]?\s*(\d+(?:[.,]\d{1,2})?)$")


def parse_amount(text: str) -> Decimal:
    """
    Parse a user-entered amount.

    Supported formats:
    - 12.50
    - £12.50
    - 12,50
    - -3
    """
    match = AMOUNT_RE.match(text.strip())
    if not match:
        raise ValueError(f"Not an amount: {text.strip()!r}")

    sign, digits = match.group(1), match.group(2).replace(",", ".")
    value = to_money(digits)
    return -value if sign else value


def parse_item_spec(text: str) -> ReceiptItem:
    parts = [part.strip() for part in text.split("|")]
    if len(parts) == 2:
        name, quantity_part, cost_part = parts[0], "1", parts[1]
    elif len(parts) == 3:
        name, quantity_part, cost_part = parts
    else:
        raise ValueError("Expected '<name> | <qty> | <cost>' or '<name> | <cost>'")

    if not name:
        raise ValueError("Item name must not be empty")

    try:
        quantity = int(quantity_part)
    except ValueError as exc:
        raise ValueError(f"Quantity must be a whole number, got {quantity_part!r}") from exc
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")

    return ReceiptItem(name=name, quantity=quantity, cost=parse_amount(cost_part))


def parse_position(text: str) -> int:
    try:
        position = int(text.strip())
    except ValueError as exc:
        raise ValueError(f"Not a position: {text.strip()!r}") from exc
    return position - 1


def parse_positions(text: str) -> list[int]:
    return [parse_position(part) for part in text.split()]
