from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.orm import Session

from bistro.application.ports.repositories import LedgerRepository
from bistro.domain.common.ids import TransactionId
from bistro.domain.common.money import Money
from bistro.domain.ledger.entities import (
    FinancialTransaction,
    TransactionStatus,
    TransactionType,
)
from bistro.infrastructure.db.models.ledger import FinancialTransactionModel
from bistro.infrastructure.db.session import get_engine


class SqlAlchemyLedgerRepository(LedgerRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, transaction: FinancialTransaction) -> None:
        with Session(self._engine) as session:
            session.add(
                FinancialTransactionModel(
                    id=str(transaction.transaction_id),
                    description=transaction.description,
                    amount_cents=transaction.amount.amount_cents,
                    currency=transaction.amount.currency,
                    type=transaction.type.value,
                    status=transaction.status.value,
                    due_date=transaction.due_date,
                    counterparty=transaction.counterparty,
                    category=transaction.category,
                    created_at=transaction.created_at,
                    paid_at=transaction.paid_at,
                )
            )
            session.commit()

    def get(self, transaction_id: TransactionId) -> FinancialTransaction | None:
        with Session(self._engine) as session:
            model = session.get(FinancialTransactionModel, str(transaction_id))
        if model is None:
            return None
        return self._to_domain(model)

    def update(self, transaction: FinancialTransaction) -> None:
        statement = (
            update(FinancialTransactionModel)
            .where(FinancialTransactionModel.id == str(transaction.transaction_id))
            .values(
                description=transaction.description,
                amount_cents=transaction.amount.amount_cents,
                currency=transaction.amount.currency,
                type=transaction.type.value,
                status=transaction.status.value,
                due_date=transaction.due_date,
                counterparty=transaction.counterparty,
                category=transaction.category,
                paid_at=transaction.paid_at,
            )
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def delete(self, transaction_id: TransactionId) -> bool:
        statement = delete(FinancialTransactionModel).where(
            FinancialTransactionModel.id == str(transaction_id)
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            session.commit()
        return result.rowcount == 1

    def list(
        self,
        type: TransactionType | None = None,
        status: TransactionStatus | None = None,
    ) -> list[FinancialTransaction]:
        statement = select(FinancialTransactionModel)
        if type is not None:
            statement = statement.where(FinancialTransactionModel.type == type.value)
        if status is not None:
            statement = statement.where(FinancialTransactionModel.status == status.value)
        statement = statement.order_by(
            FinancialTransactionModel.created_at.desc(),
            FinancialTransactionModel.id.desc(),
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [self._to_domain(model) for model in models]

    def _to_domain(self, model: FinancialTransactionModel) -> FinancialTransaction:
        return FinancialTransaction(
            transaction_id=TransactionId(model.id),
            description=model.description,
            amount=Money(amount_cents=model.amount_cents, currency=model.currency),
            type=TransactionType(model.type),
            status=TransactionStatus(model.status),
            due_date=model.due_date,
            counterparty=model.counterparty,
            category=model.category,
            created_at=_as_utc(model.created_at),
            paid_at=_as_utc(model.paid_at) if model.paid_at is not None else None,
        )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
