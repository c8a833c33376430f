from decimal import Decimal

from splitbill.db.models import ReceiptItem, ReceiptParseResult
from splitbill.services.receipt import EditableReceipt
from splitbill.services.splitting import EditableReceiptWithSplitting


def split_receipt() -> EditableReceiptWithSplitting:
    result = ReceiptParseResult(
        items=(
            ReceiptItem("Pizza", 2, Decimal("20.00")),
            ReceiptItem("Salad", 1, Decimal("8.00")),
            ReceiptItem("Drinks", 3, Decimal("9.00")),
        ),
        service_charge=Decimal("3.70"),
        total=Decimal("40.70"),
    )
    receipt = EditableReceiptWithSplitting.from_editable_receipt(EditableReceipt.from_parse_result(result))
    receipt = receipt.add_participant("Alice").add_participant("Bob").add_participant("Carol")
    alice, bob, carol = receipt.participants
    return (
        receipt.assign_item_to_equal_split(0, [alice.id, bob.id, carol.id])
        .assign_item_to_participant(1, alice.id)
        .assign_item_to_participant(2, bob.id)
    )


def test_no_payer_no_payment_summary():
    assert split_receipt().payment_summary is None


def test_payments_go_to_payer():
    receipt = split_receipt()
    alice = receipt.participants[0]

    summary = receipt.designate_payer(alice.id).payment_summary

    assert summary is not None
    assert summary.payer == alice
    assert summary.total_bill_amount == Decimal("40.70")
    assert [p.from_participant.name for p in summary.payments] == ["Bob", "Carol"]
    assert all(p.to_participant == alice for p in summary.payments)
    assert summary.payer_owes + summary.total_reimbursed == summary.total_bill_amount


def test_participants_owing_nothing_are_skipped():
    receipt = split_receipt().add_participant("Dave").update_service_charge("0")
    alice = receipt.participants[0]

    summary = receipt.designate_payer(alice.id).payment_summary

    assert summary is not None
    assert "Dave" not in [p.from_participant.name for p in summary.payments]


def test_unknown_payer_has_no_settlement():
    receipt = split_receipt().designate_payer("nobody")
    assert receipt.payer_id == "nobody"
    assert receipt.payment_summary is None
