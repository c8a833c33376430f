from decimal import Decimal

import pytest

from splitbill.db.models import (
    EqualSplit,
    IndividualAssignment,
    Participant,
    ReceiptItem,
    ReceiptParseResult,
    Unassigned,
    references_participant,
)
from splitbill.services.receipt import EditableReceipt
from splitbill.services.splitting import EditableReceiptWithSplitting


def sample_receipt() -> EditableReceipt:
    result = ReceiptParseResult(
        items=(
            ReceiptItem("Pizza", 2, Decimal("20.00")),
            ReceiptItem("Salad", 1, Decimal("8.00")),
            ReceiptItem("Drinks", 3, Decimal("9.00")),
        ),
        service_charge=Decimal("3.70"),
        total=Decimal("40.70"),
    )
    return EditableReceipt.from_parse_result(result)


def with_people(*names: str) -> EditableReceiptWithSplitting:
    receipt = EditableReceiptWithSplitting.from_editable_receipt(sample_receipt())
    for name in names:
        receipt = receipt.add_participant(name)
    return receipt


def test_participant_ids_are_unique():
    alice, bob = Participant.create("Alice"), Participant.create(" Bob ")
    assert alice.id != bob.id
    assert bob.name == "Bob"
    with pytest.raises(ValueError):
        Participant.create("   ")


def test_from_editable_receipt_starts_unassigned():
    receipt = with_people()
    assert receipt.participants == ()
    assert len(receipt.assigned_items) == 3
    assert all(isinstance(item.assignment, Unassigned) for item in receipt.assigned_items)
    assert not any(item.is_assigned for item in receipt.assigned_items)


def test_add_participant_recalculates():
    receipt = with_people("Alice")
    assert [p.name for p in receipt.participants] == ["Alice"]
    assert len(receipt.bill_split_summary.participants) == 1
    assert receipt.add_participant("  ") is receipt


def test_remove_participant_unassigns_their_items():
    receipt = with_people("Alice", "Bob")
    alice, bob = receipt.participants
    receipt = receipt.assign_item_to_participant(0, alice.id).designate_payer(alice.id)

    updated = receipt.remove_participant(alice.id)

    assert [p.name for p in updated.participants] == ["Bob"]
    assert isinstance(updated.assigned_items[0].assignment, Unassigned)
    assert updated.payer_id is None


def test_remove_participant_shrinks_equal_split():
    receipt = with_people("Alice", "Bob")
    alice, bob = receipt.participants
    receipt = receipt.assign_item_to_equal_split(0, [alice.id, bob.id])

    shrunk = receipt.remove_participant(alice.id)
    assert shrunk.assigned_items[0].assignment == EqualSplit(frozenset({bob.id}))

    emptied = shrunk.remove_participant(bob.id)
    assert isinstance(emptied.assigned_items[0].assignment, Unassigned)


def test_assign_item_to_participant():
    receipt = with_people("Alice")
    alice = receipt.participants[0]
    updated = receipt.assign_item_to_participant(0, alice.id)
    assert updated.assigned_items[0].assignment == IndividualAssignment(alice.id)
    assert updated.assigned_items[0].is_assigned


def test_assign_item_to_equal_split():
    receipt = with_people("Alice", "Bob")
    ids = [p.id for p in receipt.participants]
    updated = receipt.assign_item_to_equal_split(0, ids)
    assert updated.assigned_items[0].assignment == EqualSplit(frozenset(ids))
    assert isinstance(updated.assign_item_to_equal_split(0, []).assigned_items[0].assignment, Unassigned)


def test_individual_assignment_summary():
    receipt = with_people("Alice", "Bob")
    alice, bob = receipt.participants
    summary = receipt.assign_item_to_participant(0, alice.id).assign_item_to_participant(1, bob.id).bill_split_summary

    assert summary.total_assigned == Decimal("28.00")
    assert summary.total_unassigned == Decimal("9.00")
    assert not summary.is_fully_assigned

    alice_balance = summary.balance_for(alice.id)
    assert alice_balance.subtotal == Decimal("20.00")
    assert alice_balance.service_charge == Decimal("1.85")
    assert alice_balance.total == Decimal("21.85")
    assert [item.name for item in alice_balance.items_owed] == ["Pizza"]


def test_equal_split_summary():
    receipt = with_people("Alice", "Bob", "Carol")
    alice, bob, carol = receipt.participants
    receipt = (
        receipt.assign_item_to_equal_split(0, [alice.id, bob.id, carol.id])
        .assign_item_to_participant(1, alice.id)
        .assign_item_to_participant(2, bob.id)
    )
    summary = receipt.bill_split_summary

    assert summary.is_fully_assigned
    assert sum(b.total for b in summary.balances) == Decimal("40.70")
    for balance in summary.balances:
        pizza = balance.items_owed[0]
        assert "split 3 ways" in pizza.name
        assert abs(pizza.cost - Decimal("6.67")) <= Decimal("0.01")
        assert abs(balance.service_charge - Decimal("1.23")) <= Decimal("0.01")


def test_item_edits_keep_assignments_aligned():
    receipt = with_people("Alice")
    alice = receipt.participants[0]
    receipt = receipt.assign_item_to_participant(2, alice.id)

    receipt = receipt.delete_receipt_item(0)
    assert [a.receipt_item.name for a in receipt.assigned_items] == ["Salad", "Drinks"]
    assert receipt.assigned_items[1].assignment == IndividualAssignment(alice.id)

    receipt = receipt.add_receipt_item(ReceiptItem("Bread", 1, Decimal("4.00")))
    assert isinstance(receipt.assigned_items[2].assignment, Unassigned)

    receipt = receipt.update_receipt_item(1, ReceiptItem("Wine", 1, Decimal("12.00")))
    assert receipt.assigned_items[1].receipt_item.name == "Wine"
    assert receipt.assigned_items[1].assignment == IndividualAssignment(alice.id)
    assert receipt.bill_split_summary.balance_for(alice.id).subtotal == Decimal("12.00")


def test_out_of_range_indices_are_ignored():
    receipt = with_people("Alice")
    alice = receipt.participants[0]
    assert receipt.assign_item_to_participant(3, alice.id) is receipt
    assert receipt.unassign_item(-1) is receipt
    assert receipt.delete_receipt_item(10) is receipt


def test_service_charge_and_total_updates():
    receipt = with_people("Alice", "Bob")
    updated = receipt.update_service_charge("5.00")
    assert updated.editable_receipt.service_charge == Decimal("5.00")
    assert updated.bill_split_summary.service_charge == Decimal("5.00")
    assert updated.editable_receipt.calculation.has_discrepancy
    assert not updated.update_total("42.00").editable_receipt.calculation.has_discrepancy


def test_payer_is_kept_across_edits():
    receipt = with_people("Alice", "Bob")
    alice = receipt.participants[0]
    receipt = receipt.designate_payer(alice.id).unassign_item(0).add_participant("Carol")
    assert receipt.payer_id == alice.id
    assert receipt.clear_payer().payer_id is None


def test_create_rejects_mismatched_assignments():
    with pytest.raises(ValueError):
        EditableReceiptWithSplitting.create(sample_receipt(), [], [])


def test_two_people_full_assignment_example():
    receipt = with_people("A", "B")
    a, b = receipt.participants
    summary = (
        receipt.assign_item_to_participant(0, a.id)
        .assign_item_to_participant(2, a.id)
        .assign_item_to_participant(1, b.id)
        .bill_split_summary
    )

    assert summary.is_fully_assigned
    assert summary.balance_for(a.id).subtotal == Decimal("29.00")
    assert summary.balance_for(a.id).service_charge == Decimal("1.85")
    assert summary.balance_for(a.id).total == Decimal("30.85")
    assert summary.balance_for(b.id).total == Decimal("9.85")
    assert sum(bal.total for bal in summary.balances) == summary.total_assigned + summary.service_charge


def test_only_pizza_shared_leaves_rest_unassigned():
    receipt = with_people("A", "B", "C")
    summary = receipt.assign_item_to_equal_split(0, [p.id for p in receipt.participants]).bill_split_summary

    assert summary.total_unassigned == Decimal("17.00")
    assert not summary.is_fully_assigned
    assert sum(bal.subtotal for bal in summary.balances) == Decimal("20.00")
    for balance in summary.balances:
        assert abs(balance.subtotal - Decimal("6.67")) <= Decimal("0.01")


def test_removed_participant_is_never_referenced():
    receipt = with_people("A", "B", "C")
    a, b, c = receipt.participants
    receipt = (
        receipt.assign_item_to_equal_split(0, [a.id, b.id])
        .assign_item_to_participant(1, a.id)
        .assign_item_to_equal_split(2, [a.id, b.id, c.id])
    )

    updated = receipt.remove_participant(a.id)

    assert not any(references_participant(assignment, a.id) for assignment in updated.assignments)
    assert updated.bill_split_summary.balance_for(a.id) is None
    assert updated.bill_split_summary.total_unassigned == Decimal("8.00")
