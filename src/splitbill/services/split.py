from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from splitbill.db.models import (
    AssignedReceiptItem,
    EqualSplit,
    IndividualAssignment,
    Participant,
    ReceiptItem,
)
from splitbill.utils.money import MoneyLike, from_cents, to_cents

if TYPE_CHECKING:
    from splitbill.services.settlement import PaymentSummary


def split_amount(amount_cents: int, consumers: Sequence[str]) -> dict[str, int]:
    if not consumers:
        raise ValueError("consumers must not be empty")

    # Floor share for everyone, then one extra penny each for the first `extra` consumers
    base_share, extra = divmod(amount_cents, len(consumers))
    return {consumer: base_share + (1 if idx < extra else 0) for idx, consumer in enumerate(consumers)}


def split_label(item: ReceiptItem, ways: int) -> str:
    return f"{item.name} (split {ways} ways)"


@dataclass(frozen=True, slots=True)
class ParticipantBalance:
    participant: Participant
    items_owed: tuple[ReceiptItem, ...]
    subtotal: Decimal
    service_charge: Decimal

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.service_charge


@dataclass(frozen=True, slots=True)
class BillSplitSummary:
    participants: tuple[Participant, ...]
    assigned_items: tuple[AssignedReceiptItem, ...]
    balances: tuple[ParticipantBalance, ...]
    total_assigned: Decimal
    total_unassigned: Decimal
    service_charge: Decimal
    payer_id: Optional[str] = None

    @property
    def is_fully_assigned(self) -> bool:
        # Amounts are whole pence, so exact comparison is safe
        return self.total_unassigned == 0

    def balance_for(self, participant_id: str) -> Optional[ParticipantBalance]:
        for balance in self.balances:
            if balance.participant.id == participant_id:
                return balance
        return None

    @property
    def payment_summary(self) -> Optional[PaymentSummary]:
        from splitbill.services.settlement import summarize_payments

        return summarize_payments(self)


def _ordered_members(participant_ids: frozenset[str], order: Mapping[str, int]) -> list[str]:
    return sorted(participant_ids, key=lambda pid: (order.get(pid, len(order)), pid))


def calculate_bill_split(
    participants: Sequence[Participant],
    assigned_items: Sequence[AssignedReceiptItem],
    service_charge: MoneyLike,
    payer_id: Optional[str] = None,
) -> BillSplitSummary:
    participants = tuple(participants)
    assigned_items = tuple(assigned_items)
    order = {participant.id: idx for idx, participant in enumerate(participants)}

    owed_cents: dict[str, int] = {participant.id: 0 for participant in participants}
    owed_items: dict[str, list[ReceiptItem]] = {participant.id: [] for participant in participants}
    assigned_cents = 0
    unassigned_cents = 0

    for assigned in assigned_items:
        item = assigned.receipt_item
        cost_cents = to_cents(item.cost)
        assignment = assigned.assignment

        if isinstance(assignment, IndividualAssignment):
            assigned_cents += cost_cents
            if assignment.participant_id in owed_cents:
                owed_cents[assignment.participant_id] += cost_cents
                owed_items[assignment.participant_id].append(item)
        elif isinstance(assignment, EqualSplit):
            assigned_cents += cost_cents
            members = _ordered_members(assignment.participant_ids, order)
            label = split_label(item, len(members))
            for participant_id, share in split_amount(cost_cents, members).items():
                if participant_id not in owed_cents:
                    continue
                owed_cents[participant_id] += share
                owed_items[participant_id].append(
                    ReceiptItem(name=label, quantity=item.quantity, cost=from_cents(share))
                )
        else:
            unassigned_cents += cost_cents

    service_cents = to_cents(service_charge)
    service_shares = split_amount(service_cents, list(order)) if participants else {}

    balances = tuple(
        ParticipantBalance(
            participant=participant,
            items_owed=tuple(owed_items[participant.id]),
            subtotal=from_cents(owed_cents[participant.id]),
            service_charge=from_cents(service_shares.get(participant.id, 0)),
        )
        for participant in participants
    )

    return BillSplitSummary(
        participants=participants,
        assigned_items=assigned_items,
        balances=balances,
        total_assigned=from_cents(assigned_cents),
        total_unassigned=from_cents(unassigned_cents),
        service_charge=from_cents(service_cents),
        payer_id=payer_id,
    )
