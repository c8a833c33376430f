from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Optional, Union

from splitbill.utils.money import MoneyLike, to_money

if TYPE_CHECKING:
    from splitbill.services.splitting import EditableReceiptWithSplitting


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class ReceiptItem:
    name: str
    quantity: int = 1
    # Total for the whole quantity, not a unit price
    cost: Decimal = Decimal("0.00")

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {self.quantity}")
        object.__setattr__(self, "cost", to_money(self.cost))


@dataclass(frozen=True, slots=True)
class ReceiptParseResult:
    error: Optional[str] = None
    items: Optional[tuple[ReceiptItem, ...]] = None
    service_charge: Optional[Decimal] = None
    total: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.items is not None:
            object.__setattr__(self, "items", tuple(self.items))
        if self.service_charge is not None:
            object.__setattr__(self, "service_charge", to_money(self.service_charge))
        if self.total is not None:
            object.__setattr__(self, "total", to_money(self.total))

    @property
    def is_receipt(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class Participant:
    id: str
    name: str

    @classmethod
    def create(cls, name: str) -> Participant:
        clean = name.strip()
        if not clean:
            raise ValueError("Participant name must not be empty")
        return cls(id=new_id(), name=clean)


@dataclass(frozen=True, slots=True)
class Unassigned:
    pass


@dataclass(frozen=True, slots=True)
class IndividualAssignment:
    participant_id: str


@dataclass(frozen=True, slots=True)
class EqualSplit:
    participant_ids: frozenset[str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "participant_ids", frozenset(self.participant_ids))
        if not self.participant_ids:
            raise ValueError("EqualSplit needs at least one participant; use UNASSIGNED instead")


ItemAssignment = Union[Unassigned, IndividualAssignment, EqualSplit]

UNASSIGNED = Unassigned()


def equal_split(participant_ids: Iterable[str]) -> ItemAssignment:
    ids = frozenset(participant_ids)
    if not ids:
        return UNASSIGNED
    return EqualSplit(ids)


def without_participant(assignment: ItemAssignment, participant_id: str) -> ItemAssignment:
    if isinstance(assignment, IndividualAssignment):
        return UNASSIGNED if assignment.participant_id == participant_id else assignment
    if isinstance(assignment, EqualSplit):
        if participant_id not in assignment.participant_ids:
            return assignment
        return equal_split(assignment.participant_ids - {participant_id})
    return assignment


def references_participant(assignment: ItemAssignment, participant_id: str) -> bool:
    if isinstance(assignment, IndividualAssignment):
        return assignment.participant_id == participant_id
    if isinstance(assignment, EqualSplit):
        return participant_id in assignment.participant_ids
    return False


@dataclass(frozen=True, slots=True)
class AssignedReceiptItem:
    receipt_item: ReceiptItem
    assignment: ItemAssignment = UNASSIGNED

    @property
    def is_assigned(self) -> bool:
        return not isinstance(self.assignment, Unassigned)


@dataclass(frozen=True, slots=True)
class BillEvent:
    id: str
    name: str
    timestamp: datetime
    receipt_with_splitting: EditableReceiptWithSplitting

    @classmethod
    def create(cls, name: str, receipt_with_splitting: EditableReceiptWithSplitting) -> BillEvent:
        return cls(
            id=new_id(),
            name=name.strip(),
            timestamp=datetime.now(timezone.utc),
            receipt_with_splitting=receipt_with_splitting,
        )

    def renamed(self, name: str) -> BillEvent:
        return replace(self, name=name.strip())


def coerce_amount(value: Optional[MoneyLike]) -> Decimal:
    return to_money(value if value is not None else 0)
