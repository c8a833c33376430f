from datetime import datetime, timezone
from decimal import Decimal

from splitbill.db.models import BillEvent, ReceiptItem, ReceiptParseResult
from splitbill.state import BalanceSummary, Editing, Error, Initial, Loading, SessionStateManager, Splitting

USER = 1

MATCHING = ReceiptParseResult(
    items=(ReceiptItem("Tea", 2, Decimal("3.60")),),
    service_charge=Decimal("0.40"),
    total=Decimal("4.00"),
)


def test_initial_loading_and_error():
    manager = SessionStateManager()
    assert isinstance(manager.get(USER), Initial)
    assert isinstance(manager.start_loading(USER), Loading)
    assert manager.parse_failed(USER, "") == Error("Failed to parse receipt")


def test_receipt_flow_through_splitting_and_summary():
    manager = SessionStateManager()
    manager.receipt_parsed(USER, MATCHING)

    assert manager.edit_receipt(USER, lambda r: r.update_service_charge("0.40")) is not None
    assert isinstance(manager.enter_splitting(USER), Splitting)
    assert manager.edit_receipt(USER, lambda r: r) is None

    manager.edit_split(USER, lambda r: r.add_participant("Alice"))
    summary = manager.show_summary(USER)
    assert isinstance(summary, BalanceSummary)
    assert summary.event_id is None

    back = manager.back_to_splitting(USER)
    assert back is not None
    assert [p.name for p in back.receipt_with_splitting.participants] == ["Alice"]

    editing = manager.exit_splitting(USER)
    assert isinstance(editing, Editing)
    assert editing.receipt.total == Decimal("4.00")


def test_splitting_refused_while_totals_differ():
    manager = SessionStateManager()
    manager.receipt_parsed(USER, MATCHING)
    manager.edit_receipt(USER, lambda r: r.update_total("10.00"))

    assert manager.enter_splitting(USER) is None
    assert isinstance(manager.get(USER), Editing)


def test_viewing_saved_event_is_read_only_except_payer():
    manager = SessionStateManager()
    manager.receipt_parsed(USER, MATCHING)
    manager.enter_splitting(USER)
    manager.edit_split(USER, lambda r: r.add_participant("Alice"))
    split = manager.get(USER)
    assert isinstance(split, Splitting)
    event = BillEvent("evt", "Tea time", datetime.now(timezone.utc), split.receipt_with_splitting)

    manager.view_event(USER, event)

    assert manager.viewed_event_id(USER) == "evt"
    assert manager.viewed_event_name(USER) == "Tea time"
    assert manager.back_to_splitting(USER) is None
    assert manager.exit_splitting(USER) is None
    assert manager.edit_split(USER, lambda r: r.add_participant("Bob")) is None

    alice = event.receipt_with_splitting.participants[0]
    updated = manager.edit_split(USER, lambda r: r.designate_payer(alice.id), allow_summary=True)
    assert isinstance(updated, BalanceSummary)
    assert updated.event_id == "evt"
    assert updated.receipt_with_splitting.payer_id == alice.id

    manager.set_viewed_event_name(USER, "Afternoon tea")
    assert manager.viewed_event_name(USER) == "Afternoon tea"


def test_reset_clears_session():
    manager = SessionStateManager()
    manager.receipt_parsed(USER, MATCHING)
    manager.reset(USER)
    assert isinstance(manager.get(USER), Initial)
    assert manager.viewed_event_name(USER) is None
