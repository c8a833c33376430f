from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from splitbill.db.models import (
    UNASSIGNED,
    AssignedReceiptItem,
    IndividualAssignment,
    ItemAssignment,
    Participant,
    ReceiptItem,
    equal_split,
    without_participant,
)
from splitbill.services.receipt import EditableReceipt
from splitbill.services.settlement import PaymentSummary
from splitbill.services.split import BillSplitSummary, calculate_bill_split
from splitbill.utils.money import MoneyLike

_KEEP = object()


@dataclass(frozen=True, slots=True)
class EditableReceiptWithSplitting:
    """Receipt plus participants and per-item assignments.

    ``assigned_items[i]`` always pairs ``editable_receipt.items[i]`` with its
    assignment. Every method returns a new value with the summary recomputed.
    """

    editable_receipt: EditableReceipt
    participants: tuple[Participant, ...]
    assigned_items: tuple[AssignedReceiptItem, ...]
    bill_split_summary: BillSplitSummary

    @classmethod
    def create(
        cls,
        editable_receipt: EditableReceipt,
        participants: Sequence[Participant],
        assignments: Sequence[ItemAssignment],
        payer_id: Optional[str] = None,
    ) -> EditableReceiptWithSplitting:
        if len(assignments) != len(editable_receipt.items):
            raise ValueError("assignments must match receipt items one to one")
        participants = tuple(participants)
        assigned_items = tuple(
            AssignedReceiptItem(receipt_item=item, assignment=assignment)
            for item, assignment in zip(editable_receipt.items, assignments)
        )
        return cls(
            editable_receipt=editable_receipt,
            participants=participants,
            assigned_items=assigned_items,
            bill_split_summary=calculate_bill_split(
                participants,
                assigned_items,
                editable_receipt.service_charge,
                payer_id,
            ),
        )

    @classmethod
    def from_editable_receipt(cls, editable_receipt: EditableReceipt) -> EditableReceiptWithSplitting:
        return cls.create(
            editable_receipt=editable_receipt,
            participants=(),
            assignments=[UNASSIGNED] * len(editable_receipt.items),
        )

    @property
    def payer_id(self) -> Optional[str]:
        return self.bill_split_summary.payer_id

    @property
    def payment_summary(self) -> Optional[PaymentSummary]:
        return self.bill_split_summary.payment_summary

    @property
    def assignments(self) -> tuple[ItemAssignment, ...]:
        return tuple(assigned.assignment for assigned in self.assigned_items)

    def _rebuild(
        self,
        editable_receipt: Optional[EditableReceipt] = None,
        participants: Optional[Sequence[Participant]] = None,
        assignments: Optional[Sequence[ItemAssignment]] = None,
        payer_id: object = _KEEP,
    ) -> EditableReceiptWithSplitting:
        return EditableReceiptWithSplitting.create(
            editable_receipt=self.editable_receipt if editable_receipt is None else editable_receipt,
            participants=self.participants if participants is None else participants,
            assignments=self.assignments if assignments is None else assignments,
            payer_id=self.payer_id if payer_id is _KEEP else payer_id,  # type: ignore[arg-type]
        )

    def _with_assignment(self, index: int, assignment: ItemAssignment) -> EditableReceiptWithSplitting:
        if not self.editable_receipt.has_index(index):
            return self
        assignments = list(self.assignments)
        assignments[index] = assignment
        return self._rebuild(assignments=assignments)

    def add_participant(self, name: str) -> EditableReceiptWithSplitting:
        if not name.strip():
            return self
        return self._rebuild(participants=self.participants + (Participant.create(name),))

    def remove_participant(self, participant_id: str) -> EditableReceiptWithSplitting:
        participants = [p for p in self.participants if p.id != participant_id]
        assignments = [without_participant(a, participant_id) for a in self.assignments]
        payer_id = None if self.payer_id == participant_id else self.payer_id
        return self._rebuild(participants=participants, assignments=assignments, payer_id=payer_id)

    def assign_item_to_participant(self, index: int, participant_id: str) -> EditableReceiptWithSplitting:
        return self._with_assignment(index, IndividualAssignment(participant_id))

    def assign_item_to_equal_split(
        self, index: int, participant_ids: Iterable[str]
    ) -> EditableReceiptWithSplitting:
        return self._with_assignment(index, equal_split(participant_ids))

    def unassign_item(self, index: int) -> EditableReceiptWithSplitting:
        return self._with_assignment(index, UNASSIGNED)

    def update_receipt_item(self, index: int, item: ReceiptItem) -> EditableReceiptWithSplitting:
        if not self.editable_receipt.has_index(index):
            return self
        return self._rebuild(editable_receipt=self.editable_receipt.update_item(index, item))

    def add_receipt_item(self, item: ReceiptItem) -> EditableReceiptWithSplitting:
        return self._rebuild(
            editable_receipt=self.editable_receipt.add_item(item),
            assignments=self.assignments + (UNASSIGNED,),
        )

    def delete_receipt_item(self, index: int) -> EditableReceiptWithSplitting:
        if not self.editable_receipt.has_index(index):
            return self
        assignments = self.assignments
        return self._rebuild(
            editable_receipt=self.editable_receipt.delete_item(index),
            assignments=assignments[:index] + assignments[index + 1 :],
        )

    def update_service_charge(self, service_charge: MoneyLike) -> EditableReceiptWithSplitting:
        return self._rebuild(editable_receipt=self.editable_receipt.update_service_charge(service_charge))

    def update_total(self, total: MoneyLike) -> EditableReceiptWithSplitting:
        return self._rebuild(editable_receipt=self.editable_receipt.update_total(total))

    def designate_payer(self, participant_id: str) -> EditableReceiptWithSplitting:
        return self._rebuild(payer_id=participant_id)

    def clear_payer(self) -> EditableReceiptWithSplitting:
        return self._rebuild(payer_id=None)
