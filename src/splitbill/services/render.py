from __future__ import annotations

from html import escape
from typing import Iterable, Optional

from splitbill.db.models import BillEvent, EqualSplit, IndividualAssignment, ItemAssignment, Participant
from splitbill.services.receipt import EditableReceipt
from splitbill.services.split import BillSplitSummary
from splitbill.services.splitting import EditableReceiptWithSplitting
from splitbill.utils.money import MoneyLike, format_money


def _names(participants: Iterable[Participant]) -> dict[str, str]:
    return {participant.id: participant.name for participant in participants}


def describe_assignment(assignment: ItemAssignment, names: dict[str, str]) -> str:
    if isinstance(assignment, IndividualAssignment):
        return escape(names.get(assignment.participant_id, "?"))
    if isinstance(assignment, EqualSplit):
        members = sorted(names.get(pid, "?") for pid in assignment.participant_ids)
        return "shared: " + ", ".join(escape(name) for name in members)
    return "unassigned"


def format_receipt(receipt: EditableReceipt, symbol: str = "£") -> str:
    lines: list[str] = []
    if receipt.error:
        lines.append(f"⚠️ {escape(receipt.error)}")
        lines.append("You can still enter the items by hand.")
        lines.append("")

    lines.append("<b>Receipt</b>")
    if not receipt.items:
        lines.append("No items yet.")
    for position, item in enumerate(receipt.items, start=1):
        lines.append(f"{position}. {escape(item.name)} ×{item.quantity}: {format_money(item.cost, symbol)}")

    calc = receipt.calculation
    lines.append("")
    lines.append(f"Subtotal: {format_money(calc.subtotal, symbol)}")
    lines.append(f"Service: {format_money(calc.service_charge, symbol)}")
    lines.append(f"Expected total: {format_money(calc.expected_total, symbol)}")
    lines.append(f"Receipt total: {format_money(calc.actual_total, symbol)}")
    if calc.has_discrepancy:
        lines.append(
            f"❗ Items and service differ from the receipt total by "
            f"{format_money(calc.discrepancy_amount, symbol)}. Fix them before splitting."
        )
    return "\n".join(lines)


def format_splitting(receipt: EditableReceiptWithSplitting, symbol: str = "£") -> str:
    names = _names(receipt.participants)
    lines = ["<b>Participants</b>"]
    if not receipt.participants:
        lines.append("Nobody yet. Add people with /addperson.")
    for position, participant in enumerate(receipt.participants, start=1):
        marker = " (paid)" if participant.id == receipt.payer_id else ""
        lines.append(f"{position}. {escape(participant.name)}{marker}")

    lines.append("")
    lines.append("<b>Items</b>")
    for position, assigned in enumerate(receipt.assigned_items, start=1):
        item = assigned.receipt_item
        lines.append(
            f"{position}. {escape(item.name)}: {format_money(item.cost, symbol)} "
            f"→ {describe_assignment(assigned.assignment, names)}"
        )

    summary = receipt.bill_split_summary
    lines.append("")
    lines.append(f"Assigned: {format_money(summary.total_assigned, symbol)}")
    if not summary.is_fully_assigned:
        lines.append(f"Unassigned: {format_money(summary.total_unassigned, symbol)}")
    return "\n".join(lines)


def format_summary(
    summary: BillSplitSummary,
    original_total: Optional[MoneyLike] = None,
    symbol: str = "£",
    title: Optional[str] = None,
) -> str:
    lines = [f"<b>{escape(title)}</b>" if title else "<b>Balance summary</b>"]
    if original_total is not None:
        lines.append(f"Receipt total: {format_money(original_total, symbol)}")
    lines.append(f"Assigned: {format_money(summary.total_assigned, symbol)}")
    if not summary.is_fully_assigned:
        lines.append(f"Unassigned: {format_money(summary.total_unassigned, symbol)}")

    for balance in summary.balances:
        lines.append("")
        lines.append(f"<b>{escape(balance.participant.name)}</b>: {format_money(balance.total, symbol)}")
        for item in balance.items_owed:
            lines.append(f"  • {escape(item.name)}: {format_money(item.cost, symbol)}")
        lines.append(f"  Subtotal: {format_money(balance.subtotal, symbol)}")
        lines.append(f"  Service: {format_money(balance.service_charge, symbol)}")

    unassigned = [assigned.receipt_item for assigned in summary.assigned_items if not assigned.is_assigned]
    if unassigned:
        lines.append("")
        lines.append(
            f"⚠️ These items totalling {format_money(summary.total_unassigned, symbol)} "
            "are not assigned to anyone:"
        )
        for item in unassigned:
            lines.append(f"  • {escape(item.name)}: {format_money(item.cost, symbol)}")

    payments = summary.payment_summary
    if payments is not None:
        lines.append("")
        lines.append(f"<b>{escape(payments.payer.name)} paid {format_money(payments.total_bill_amount, symbol)}</b>")
        lines.append(f"Their own share: {format_money(payments.payer_owes, symbol)}")
        if not payments.payments:
            lines.append("Nobody owes them anything.")
        for payment in payments.payments:
            lines.append(
                f"  {escape(payment.from_participant.name)} → {escape(payment.to_participant.name)}: "
                f"{format_money(payment.amount, symbol)}"
            )
    return "\n".join(lines)


def format_bill_list(events: Iterable[BillEvent], symbol: str = "£") -> str:
    lines = ["<b>Saved bills</b>"]
    count = 0
    for event in events:
        count += 1
        receipt = event.receipt_with_splitting
        lines.append(
            f"{count}. {escape(event.name)} · {event.timestamp.strftime('%d %b %Y %H:%M')} · "
            f"{len(receipt.participants)} people · {format_money(receipt.editable_receipt.total, symbol)}"
        )
    if count == 0:
        lines.append("No saved bills yet.")
    return "\n".join(lines)
