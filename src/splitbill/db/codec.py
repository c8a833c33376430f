from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from splitbill.db.models import (
    UNASSIGNED,
    BillEvent,
    EqualSplit,
    IndividualAssignment,
    ItemAssignment,
    Participant,
    ReceiptItem,
    ReceiptParseResult,
    equal_split,
)
from splitbill.services.receipt import EditableReceipt
from splitbill.services.splitting import EditableReceiptWithSplitting
from splitbill.utils.money import to_money

FORMAT_VERSION = 1


def _amount(value: Any) -> str:
    return str(to_money(value))


def _optional_amount(value: Any) -> Optional[str]:
    return None if value is None else _amount(value)


def item_to_dict(item: ReceiptItem) -> dict[str, Any]:
    return {"name": item.name, "quantity": item.quantity, "cost": _amount(item.cost)}


def item_from_dict(data: dict[str, Any]) -> ReceiptItem:
    return ReceiptItem(
        name=str(data["name"]),
        quantity=int(data.get("quantity", 1)),
        cost=to_money(data["cost"]),
    )


def assignment_to_dict(assignment: ItemAssignment) -> dict[str, Any]:
    if isinstance(assignment, IndividualAssignment):
        return {"type": "IndividualAssignment", "participantId": assignment.participant_id}
    if isinstance(assignment, EqualSplit):
        return {"type": "EqualSplit", "participantIds": sorted(assignment.participant_ids)}
    return {"type": "Unassigned"}


def assignment_from_dict(data: Optional[dict[str, Any]]) -> ItemAssignment:
    if not data:
        return UNASSIGNED
    kind = data.get("type")
    if kind == "IndividualAssignment" and data.get("participantId"):
        return IndividualAssignment(str(data["participantId"]))
    if kind == "EqualSplit":
        return equal_split(str(pid) for pid in data.get("participantIds") or [])
    return UNASSIGNED


def parse_result_to_dict(result: ReceiptParseResult) -> dict[str, Any]:
    return {
        "error": result.error,
        "items": None if result.items is None else [item_to_dict(item) for item in result.items],
        "service": _optional_amount(result.service_charge),
        "total": _optional_amount(result.total),
    }


def parse_result_from_dict(data: dict[str, Any]) -> ReceiptParseResult:
    items = data.get("items")
    return ReceiptParseResult(
        error=data.get("error"),
        items=None if items is None else tuple(item_from_dict(item) for item in items),
        service_charge=data.get("service"),
        total=data.get("total"),
    )


def splitting_to_dict(receipt: EditableReceiptWithSplitting) -> dict[str, Any]:
    editable = receipt.editable_receipt
    return {
        "originalResult": parse_result_to_dict(editable.original_result),
        "items": [item_to_dict(item) for item in editable.items],
        "serviceCharge": _amount(editable.service_charge),
        "total": _amount(editable.total),
        "participants": [{"id": p.id, "name": p.name} for p in receipt.participants],
        "assignments": [assignment_to_dict(a) for a in receipt.assignments],
        "payerId": receipt.payer_id,
    }


def splitting_from_dict(data: dict[str, Any]) -> EditableReceiptWithSplitting:
    editable = EditableReceipt.create(
        original_result=parse_result_from_dict(data.get("originalResult") or {}),
        items=[item_from_dict(item) for item in data.get("items") or []],
        service_charge=data.get("serviceCharge") or 0,
        total=data.get("total") or 0,
    )
    participants = [
        Participant(id=str(p["id"]), name=str(p["name"])) for p in data.get("participants") or []
    ]
    assignments = [assignment_from_dict(a) for a in data.get("assignments") or []]
    if len(assignments) != len(editable.items):
        raise ValueError(
            f"payload has {len(assignments)} assignments for {len(editable.items)} items"
        )
    return EditableReceiptWithSplitting.create(
        editable_receipt=editable,
        participants=participants,
        assignments=assignments,
        payer_id=data.get("payerId"),
    )


def bill_event_to_payload(event: BillEvent) -> dict[str, Any]:
    return {
        "version": FORMAT_VERSION,
        "id": event.id,
        "name": event.name,
        "timestamp": event.timestamp.isoformat(),
        "receiptWithSplitting": splitting_to_dict(event.receipt_with_splitting),
    }


def bill_event_from_payload(data: dict[str, Any]) -> BillEvent:
    try:
        return BillEvent(
            id=str(data["id"]),
            name=str(data["name"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            receipt_with_splitting=splitting_from_dict(data["receiptWithSplitting"]),
        )
    except (KeyError, TypeError, AttributeError, ArithmeticError) as exc:
        raise ValueError(f"Malformed bill event payload: {exc}") from exc
