from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from splitbill.db.models import Participant
from splitbill.services.split import BillSplitSummary
from splitbill.utils.money import ZERO


@dataclass(frozen=True, slots=True)
class Payment:
    from_participant: Participant
    to_participant: Participant
    amount: Decimal


@dataclass(frozen=True, slots=True)
class PaymentSummary:
    payer: Participant
    total_bill_amount: Decimal
    payer_owes: Decimal
    payments: tuple[Payment, ...]

    @property
    def total_reimbursed(self) -> Decimal:
        return sum((payment.amount for payment in self.payments), ZERO)


def summarize_payments(summary: BillSplitSummary) -> Optional[PaymentSummary]:
    if summary.payer_id is None:
        return None

    payer_balance = summary.balance_for(summary.payer_id)
    if payer_balance is None:
        return None

    payer = payer_balance.participant
    payments: list[Payment] = []
    for balance in summary.balances:
        if balance.participant.id == payer.id:
            continue
        if balance.total > 0:
            payments.append(
                Payment(from_participant=balance.participant, to_participant=payer, amount=balance.total)
            )

    return PaymentSummary(
        payer=payer,
        total_bill_amount=sum((balance.total for balance in summary.balances), ZERO),
        payer_owes=payer_balance.total,
        payments=tuple(payments),
    )
