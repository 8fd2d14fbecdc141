from __future__ import annotations

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session

from bistro.application.ports.repositories import TableRepository
from bistro.domain.common.ids import TableId
from bistro.domain.common.money import Money
from bistro.domain.table.entities import DiningTable, TableStatus
from bistro.infrastructure.db.models.table import TableModel
from bistro.infrastructure.db.session import get_engine


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list(self) -> list[DiningTable]:
        statement = select(TableModel).order_by(TableModel.id)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [self._to_domain(model) for model in models]

    def get(self, table_id: TableId) -> DiningTable | None:
        with Session(self._engine) as session:
            model = session.get(TableModel, int(table_id))
        if model is None:
            return None
        return self._to_domain(model)

    def add(self, table: DiningTable) -> None:
        with Session(self._engine) as session:
            session.add(
                TableModel(
                    id=int(table.table_id),
                    name=table.name,
                    status=table.status.value,
                    total_cents=table.total.amount_cents,
                    currency=table.total.currency,
                )
            )
            session.commit()

    def save(self, table: DiningTable) -> None:
        # Last write wins; tables carry no version.
        statement = (
            update(TableModel)
            .where(TableModel.id == int(table.table_id))
            .values(
                name=table.name,
                status=table.status.value,
                total_cents=table.total.amount_cents,
                currency=table.total.currency,
            )
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def free_all(self) -> int:
        statement = update(TableModel).values(
            status=TableStatus.AVAILABLE.value,
            total_cents=0,
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            session.commit()
        return result.rowcount

    def _to_domain(self, model: TableModel) -> DiningTable:
        return DiningTable(
            table_id=TableId(model.id),
            name=model.name,
            status=TableStatus(model.status),
            total=Money(amount_cents=model.total_cents, currency=model.currency),
        )
