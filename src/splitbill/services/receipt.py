from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from splitbill.db.models import ReceiptItem, ReceiptParseResult, coerce_amount
from splitbill.utils.money import TOLERANCE, ZERO, MoneyLike, to_money


@dataclass(frozen=True, slots=True)
class ReceiptCalculation:
    subtotal: Decimal
    service_charge: Decimal
    expected_total: Decimal
    actual_total: Decimal
    has_discrepancy: bool
    discrepancy_amount: Decimal


def calculate_receipt(
    items: Iterable[ReceiptItem],
    service_charge: MoneyLike,
    actual_total: MoneyLike,
) -> ReceiptCalculation:
    subtotal = sum((item.cost for item in items), ZERO)
    service = to_money(service_charge)
    actual = to_money(actual_total)
    expected = subtotal + service
    discrepancy = abs(expected - actual)
    return ReceiptCalculation(
        subtotal=subtotal,
        service_charge=service,
        expected_total=expected,
        actual_total=actual,
        has_discrepancy=discrepancy > TOLERANCE,
        discrepancy_amount=discrepancy,
    )


@dataclass(frozen=True, slots=True)
class EditableReceipt:
    original_result: ReceiptParseResult
    items: tuple[ReceiptItem, ...]
    service_charge: Decimal
    total: Decimal
    calculation: ReceiptCalculation

    @classmethod
    def create(
        cls,
        original_result: ReceiptParseResult,
        items: Sequence[ReceiptItem],
        service_charge: MoneyLike,
        total: MoneyLike,
    ) -> EditableReceipt:
        items = tuple(items)
        service = to_money(service_charge)
        actual = to_money(total)
        return cls(
            original_result=original_result,
            items=items,
            service_charge=service,
            total=actual,
            calculation=calculate_receipt(items, service, actual),
        )

    @classmethod
    def from_parse_result(cls, result: ReceiptParseResult) -> EditableReceipt:
        return cls.create(
            original_result=result,
            items=result.items or (),
            service_charge=coerce_amount(result.service_charge),
            total=coerce_amount(result.total),
        )

    @property
    def error(self) -> Optional[str]:
        return self.original_result.error

    def _rebuild(
        self,
        items: Optional[Sequence[ReceiptItem]] = None,
        service_charge: Optional[MoneyLike] = None,
        total: Optional[MoneyLike] = None,
    ) -> EditableReceipt:
        return EditableReceipt.create(
            original_result=self.original_result,
            items=self.items if items is None else items,
            service_charge=self.service_charge if service_charge is None else service_charge,
            total=self.total if total is None else total,
        )

    def has_index(self, index: int) -> bool:
        return 0 <= index < len(self.items)

    def update_items(self, items: Sequence[ReceiptItem]) -> EditableReceipt:
        return self._rebuild(items=items)

    def update_service_charge(self, service_charge: MoneyLike) -> EditableReceipt:
        return self._rebuild(service_charge=service_charge)

    def update_total(self, total: MoneyLike) -> EditableReceipt:
        return self._rebuild(total=total)

    def add_item(self, item: ReceiptItem) -> EditableReceipt:
        return self._rebuild(items=self.items + (item,))

    def update_item(self, index: int, item: ReceiptItem) -> EditableReceipt:
        if not self.has_index(index):
            return self
        items = list(self.items)
        items[index] = item
        return self._rebuild(items=items)

    def delete_item(self, index: int) -> EditableReceipt:
        if not self.has_index(index):
            return self
        return self._rebuild(items=self.items[:index] + self.items[index + 1 :])
