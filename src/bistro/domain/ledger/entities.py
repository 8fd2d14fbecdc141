from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum

from bistro.domain.common.ids import TransactionId
from bistro.domain.common.money import Money


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


@dataclass(frozen=True)
class FinancialTransaction:
    transaction_id: TransactionId
    description: str
    amount: Money
    type: TransactionType
    status: TransactionStatus
    due_date: date | None
    counterparty: str | None
    category: str | None
    created_at: datetime
    paid_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.description.strip():
            raise ValueError("description must be non-empty")
        if self.amount.amount_cents == 0:
            raise ValueError("amount must be > 0")

    def mark_paid(self, now: datetime) -> FinancialTransaction:
        if self.status == TransactionStatus.PAID:
            return self
        return replace(self, status=TransactionStatus.PAID, paid_at=now)


@dataclass(frozen=True)
class LedgerSummary:
    pending_receivable: Money
    pending_payable: Money
    paid_income: Money
    paid_expense: Money


def summarize_ledger(transactions: list[FinancialTransaction], currency: str) -> LedgerSummary:
    buckets = {
        (TransactionType.INCOME, TransactionStatus.PENDING): Money.zero(currency),
        (TransactionType.EXPENSE, TransactionStatus.PENDING): Money.zero(currency),
        (TransactionType.INCOME, TransactionStatus.PAID): Money.zero(currency),
        (TransactionType.EXPENSE, TransactionStatus.PAID): Money.zero(currency),
    }
    for transaction in transactions:
        key = (transaction.type, transaction.status)
        buckets[key] = buckets[key].plus(transaction.amount)
    return LedgerSummary(
        pending_receivable=buckets[(TransactionType.INCOME, TransactionStatus.PENDING)],
        pending_payable=buckets[(TransactionType.EXPENSE, TransactionStatus.PENDING)],
        paid_income=buckets[(TransactionType.INCOME, TransactionStatus.PAID)],
        paid_expense=buckets[(TransactionType.EXPENSE, TransactionStatus.PAID)],
    )
