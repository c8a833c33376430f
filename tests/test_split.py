from decimal import Decimal

import pytest

from splitbill.db.models import (
    AssignedReceiptItem,
    EqualSplit,
    IndividualAssignment,
    Participant,
    ReceiptItem,
)
from splitbill.services.split import calculate_bill_split, split_amount


def test_split_amount_pizza_between_three():
    shares = split_amount(2000, ["alice", "bob", "carol"])
    assert shares == {"alice": 667, "bob": 667, "carol": 666}


def test_split_amount_leftover_pennies_go_in_order():
    shares = split_amount(370, ["alice", "bob", "carol"])
    assert shares == {"alice": 124, "bob": 123, "carol": 123}
    assert split_amount(185, ["solo"]) == {"solo": 185}


def test_split_amount_negative_and_empty():
    assert sum(split_amount(-100, ["a", "b", "c"]).values()) == -100
    with pytest.raises(ValueError):
        split_amount(100, [])


def test_calculate_bill_split_mixed_assignments():
    alice, bob, carol = Participant("a", "Alice"), Participant("b", "Bob"), Participant("c", "Carol")
    items = [
        AssignedReceiptItem(ReceiptItem("Pizza", 2, Decimal("20.00")), EqualSplit(frozenset({"a", "b", "c"}))),
        AssignedReceiptItem(ReceiptItem("Salad", 1, Decimal("8.00")), IndividualAssignment("a")),
        AssignedReceiptItem(ReceiptItem("Drinks", 3, Decimal("9.00")), IndividualAssignment("b")),
    ]

    summary = calculate_bill_split([alice, bob, carol], items, Decimal("3.70"))

    assert summary.is_fully_assigned
    assert summary.total_assigned == Decimal("37.00")
    assert sum(balance.subtotal for balance in summary.balances) == Decimal("37.00")
    assert sum(balance.service_charge for balance in summary.balances) == Decimal("3.70")
    assert sum(balance.total for balance in summary.balances) == Decimal("40.70")

    carol_balance = summary.balance_for("c")
    assert carol_balance is not None
    assert abs(carol_balance.subtotal - Decimal("6.67")) <= Decimal("0.01")
    assert abs(carol_balance.service_charge - Decimal("1.23")) <= Decimal("0.01")
    assert carol_balance.items_owed[0].name == "Pizza (split 3 ways)"
    assert carol_balance.items_owed[0].quantity == 2


def test_calculate_bill_split_unassigned_items():
    alice = Participant("a", "Alice")
    items = [
        AssignedReceiptItem(ReceiptItem("Pizza", 1, Decimal("20.00")), IndividualAssignment("a")),
        AssignedReceiptItem(ReceiptItem("Drinks", 1, Decimal("9.00"))),
    ]

    summary = calculate_bill_split([alice], items, Decimal("0"))

    assert not summary.is_fully_assigned
    assert summary.total_assigned == Decimal("20.00")
    assert summary.total_unassigned == Decimal("9.00")


def test_calculate_bill_split_without_participants():
    items = [AssignedReceiptItem(ReceiptItem("Pizza", 1, Decimal("20.00")))]
    summary = calculate_bill_split([], items, Decimal("2.00"))
    assert summary.balances == ()
    assert summary.total_unassigned == Decimal("20.00")
    assert summary.payment_summary is None
