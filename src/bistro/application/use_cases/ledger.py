from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from bistro.application.dto.requests import TransactionRequest
from bistro.application.dto.responses import LedgerSummaryResponse, TransactionResponse
from bistro.application.mappers.event_envelope import (
    TOPIC_FINANCIAL_TRANSACTIONS,
    serialize_event,
)
from bistro.application.mappers.order_mapper import to_money_response
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import LedgerRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.notify import publish_change
from bistro.domain.common.ids import TransactionId
from bistro.domain.common.money import Money
from bistro.domain.ledger.entities import (
    FinancialTransaction,
    TransactionStatus,
    TransactionType,
    summarize_ledger,
)

logger = logging.getLogger(__name__)


class TransactionNotFoundError(Exception):
    pass


class InvalidTransactionFilterError(Exception):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_transaction_response(transaction: FinancialTransaction) -> TransactionResponse:
    return TransactionResponse(
        transactionId=str(transaction.transaction_id),
        description=transaction.description,
        amount=to_money_response(transaction.amount),
        type=transaction.type.value,
        status=transaction.status.value,
        dueDate=transaction.due_date,
        counterparty=transaction.counterparty,
        category=transaction.category,
        createdAt=transaction.created_at,
        paidAt=transaction.paid_at,
    )


class _LedgerWriter:
    def __init__(
        self,
        repository: LedgerRepository,
        publisher: EventPublisher,
        currency: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._publisher = publisher
        self._currency = currency
        self._clock = clock

    def _get(self, transaction_id: TransactionId) -> FinancialTransaction:
        transaction = self._repository.get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(f"transaction not found: {transaction_id}")
        return transaction

    def _publish(
        self,
        event_type: str,
        transaction_id: TransactionId,
        trace_ctx: TraceContext,
    ) -> None:
        publish_change(
            self._publisher,
            TOPIC_FINANCIAL_TRANSACTIONS,
            serialize_event(
                event_type=event_type,
                occurred_at=self._clock(),
                topic=TOPIC_FINANCIAL_TRANSACTIONS,
                payload={"transactionId": transaction_id},
                trace=trace_ctx,
            ),
        )


class CreateTransaction(_LedgerWriter):
    def execute(
        self,
        request: TransactionRequest,
        trace_ctx: TraceContext,
    ) -> TransactionResponse:
        now = self._clock()
        status = TransactionStatus(request.status)
        transaction = FinancialTransaction(
            transaction_id=TransactionId(f"txn_{uuid4().hex[:12]}"),
            description=request.description.strip(),
            amount=Money(amount_cents=request.amount_cents, currency=self._currency),
            type=TransactionType(request.type),
            status=status,
            due_date=request.due_date,
            counterparty=request.counterparty,
            category=request.category,
            created_at=now,
            paid_at=now if status == TransactionStatus.PAID else None,
        )
        self._repository.add(transaction)
        logger.info(
            "ledger_transaction_created",
            extra={
                "transaction_id": str(transaction.transaction_id),
                "type": transaction.type.value,
                "amount_cents": transaction.amount.amount_cents,
            },
        )
        self._publish("transaction.created", transaction.transaction_id, trace_ctx)
        return to_transaction_response(transaction)


class PayTransaction(_LedgerWriter):
    def execute(
        self,
        transaction_id: TransactionId,
        trace_ctx: TraceContext,
    ) -> TransactionResponse:
        transaction = self._get(transaction_id)
        paid = transaction.mark_paid(self._clock())
        if paid is not transaction:
            self._repository.update(paid)
            logger.info("ledger_transaction_paid", extra={"transaction_id": str(transaction_id)})
            self._publish("transaction.paid", transaction_id, trace_ctx)
        return to_transaction_response(paid)


class DeleteTransaction(_LedgerWriter):
    def execute(self, transaction_id: TransactionId, trace_ctx: TraceContext) -> None:
        if not self._repository.delete(transaction_id):
            raise TransactionNotFoundError(f"transaction not found: {transaction_id}")
        logger.info("ledger_transaction_deleted", extra={"transaction_id": str(transaction_id)})
        self._publish("transaction.deleted", transaction_id, trace_ctx)


def _parse_filter(enum_type, value: str | None):
    if value is None:
        return None
    try:
        return enum_type(value.lower())
    except ValueError:
        raise InvalidTransactionFilterError(f"invalid filter value: {value}") from None


class ListTransactions:
    def __init__(self, repository: LedgerRepository) -> None:
        self._repository = repository

    def execute(
        self,
        type: str | None = None,
        status: str | None = None,
    ) -> list[TransactionResponse]:
        transactions = self._repository.list(
            type=_parse_filter(TransactionType, type),
            status=_parse_filter(TransactionStatus, status),
        )
        return [to_transaction_response(t) for t in transactions]


class GetLedgerSummary:
    def __init__(self, repository: LedgerRepository, currency: str) -> None:
        self._repository = repository
        self._currency = currency

    def execute(self) -> LedgerSummaryResponse:
        summary = summarize_ledger(self._repository.list(), self._currency)
        return LedgerSummaryResponse(
            pendingReceivable=to_money_response(summary.pending_receivable),
            pendingPayable=to_money_response(summary.pending_payable),
            paidIncome=to_money_response(summary.paid_income),
            paidExpense=to_money_response(summary.paid_expense),
        )
