from __future__ import annotations

from datetime import timezone

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from bistro.application.ports.repositories import InventoryLogRepository
from bistro.domain.common.ids import InventoryLogId, ProductId
from bistro.domain.inventory.entities import InventoryLog
from bistro.infrastructure.db.models.inventory import InventoryLogModel
from bistro.infrastructure.db.session import get_engine


class SqlAlchemyInventoryLogRepository(InventoryLogRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, log: InventoryLog) -> None:
        with Session(self._engine) as session:
            session.add(
                InventoryLogModel(
                    id=str(log.log_id),
                    product_id=str(log.product_id),
                    product_name=log.product_name,
                    change_amount=log.change_amount,
                    reason=log.reason,
                    created_at=log.created_at,
                )
            )
            session.commit()

    def list_recent(self, limit: int) -> list[InventoryLog]:
        statement = (
            select(InventoryLogModel)
            .order_by(InventoryLogModel.created_at.desc(), InventoryLogModel.id.desc())
            .limit(limit)
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [self._to_domain(model) for model in models]

    def _to_domain(self, model: InventoryLogModel) -> InventoryLog:
        created_at = model.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return InventoryLog(
            log_id=InventoryLogId(model.id),
            product_id=ProductId(model.product_id),
            change_amount=model.change_amount,
            reason=model.reason,
            created_at=created_at,
            product_name=model.product_name,
        )
