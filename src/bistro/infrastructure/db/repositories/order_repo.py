from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, Select, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from bistro.application.ports.repositories import (
    DuplicateIdempotencyKeyError,
    OptimisticConcurrencyError,
    OrderRepository,
)
from bistro.domain.common.ids import OrderId, OrderItemId, ProductId, TableId
from bistro.domain.common.money import Money
from bistro.domain.order.entities import (
    ACTIVE_KITCHEN_STATUSES,
    CLOSED_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
)
from bistro.infrastructure.db.models.order import OrderItemModel, OrderModel
from bistro.infrastructure.db.models.table import TableModel
from bistro.infrastructure.db.session import get_engine

_CLOSED = [status.value for status in CLOSED_STATUSES]
_ACTIVE_KITCHEN = [status.value for status in ACTIVE_KITCHEN_STATUSES]


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, order_id: OrderId) -> Order | None:
        orders = self._fetch(_with_items().where(OrderModel.id == str(order_id)))
        return orders[0] if orders else None

    def get_by_idempotency(self, key: str) -> Order | None:
        orders = self._fetch(_with_items().where(OrderModel.idempotency_key == key))
        return orders[0] if orders else None

    def find_by_item(self, item_id: OrderItemId) -> Order | None:
        owner = select(OrderItemModel.order_id).where(OrderItemModel.id == str(item_id))
        orders = self._fetch(_with_items().where(OrderModel.id.in_(owner.scalar_subquery())))
        return orders[0] if orders else None

    def insert_order(self, order: Order) -> None:
        model = OrderModel(
            id=str(order.order_id),
            table_id=int(order.table_id) if order.table_id is not None else None,
            status=order.status.value,
            created_at=order.created_at,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            idempotency_key=order.idempotency_key,
            idempotency_hash=order.idempotency_hash,
        )
        with Session(self._engine) as session:
            session.add(model)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if order.idempotency_key is not None:
                    raise DuplicateIdempotencyKeyError(order.idempotency_key) from exc
                raise

    def delete_order(self, order_id: OrderId) -> None:
        with Session(self._engine) as session:
            session.execute(delete(OrderItemModel).where(OrderItemModel.order_id == str(order_id)))
            session.execute(delete(OrderModel).where(OrderModel.id == str(order_id)))
            session.commit()

    def insert_items(self, order_id: OrderId, items: list[OrderItem]) -> None:
        with Session(self._engine) as session:
            session.add_all(
                OrderItemModel(
                    id=str(item.item_id),
                    order_id=str(order_id),
                    position=position,
                    product_id=str(item.product_id),
                    name=item.name,
                    quantity=item.quantity,
                    unit_price_cents=item.unit_price.amount_cents,
                    currency=item.unit_price.currency,
                )
                for position, item in enumerate(items)
            )
            session.commit()

    def delete_items(self, item_ids: list[OrderItemId]) -> None:
        if not item_ids:
            return
        statement = delete(OrderItemModel).where(
            OrderItemModel.id.in_([str(item_id) for item_id in item_ids])
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def update_item_quantity(self, item_id: OrderItemId, quantity: int) -> None:
        statement = (
            update(OrderItemModel)
            .where(OrderItemModel.id == str(item_id))
            .values(quantity=quantity)
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def update_total(self, order_id: OrderId, total: Money) -> None:
        statement = (
            update(OrderModel)
            .where(OrderModel.id == str(order_id))
            .values(total_cents=total.amount_cents, currency=total.currency)
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def update_status_if(
        self,
        order_id: OrderId,
        expected_status: OrderStatus,
        new_status: OrderStatus,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.status == expected_status.value,
            )
            .values(status=new_status.value)
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(
                    f"order {order_id} is no longer {expected_status.value}"
                )
            session.commit()

        updated = self.get(order_id)
        if updated is None:
            raise RuntimeError(f"order {order_id} not found after status update")
        return updated

    def set_status(self, order_ids: list[OrderId], new_status: OrderStatus) -> int:
        if not order_ids:
            return 0
        statement = (
            update(OrderModel)
            .where(OrderModel.id.in_([str(order_id) for order_id in order_ids]))
            .values(status=new_status.value)
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            session.commit()
        return result.rowcount

    def list_open(self) -> list[Order]:
        return self._fetch(
            _with_items()
            .where(OrderModel.status.not_in(_CLOSED))
            .order_by(OrderModel.created_at, OrderModel.id)
        )

    def list_open_for_table(self, table_id: TableId) -> list[Order]:
        return self._fetch(
            _with_items()
            .where(
                OrderModel.table_id == int(table_id),
                OrderModel.status.not_in(_CLOSED),
            )
            .order_by(OrderModel.created_at, OrderModel.id)
        )

    def list_open_counter(self) -> list[Order]:
        return self._fetch(
            _with_items()
            .where(OrderModel.table_id.is_(None), OrderModel.status.not_in(_CLOSED))
            .order_by(OrderModel.created_at, OrderModel.id)
        )

    def list_active_kitchen(self) -> list[Order]:
        return self._fetch(
            _with_items()
            .where(OrderModel.status.in_(_ACTIVE_KITCHEN))
            .order_by(OrderModel.created_at, OrderModel.id)
        )

    def list_since(self, start: datetime) -> list[Order]:
        return self._fetch(
            _with_items()
            .where(OrderModel.created_at >= start)
            .order_by(OrderModel.created_at, OrderModel.id)
        )

    def list_recent(self, limit: int) -> list[Order]:
        return self._fetch(
            _with_items().order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(limit)
        )

    def delete_finalized(self) -> int:
        finalized = select(OrderModel.id).where(OrderModel.status == OrderStatus.FINALIZED.value)
        finalized_items = delete(OrderItemModel).where(
            OrderItemModel.order_id.in_(finalized.scalar_subquery())
        )
        with Session(self._engine) as session:
            session.execute(finalized_items)
            result = session.execute(
                delete(OrderModel).where(OrderModel.status == OrderStatus.FINALIZED.value)
            )
            session.commit()
        return result.rowcount

    def delete_all(self) -> int:
        with Session(self._engine) as session:
            session.execute(delete(OrderItemModel))
            result = session.execute(delete(OrderModel))
            session.commit()
        return result.rowcount

    def _fetch(self, statement: Select) -> list[Order]:
        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
            table_ids = {model.table_id for model in models if model.table_id is not None}
            names: dict[int, str] = {}
            if table_ids:
                rows = session.execute(
                    select(TableModel.id, TableModel.name).where(TableModel.id.in_(table_ids))
                )
                names = {row.id: row.name for row in rows}
            return [self._to_domain(model, names.get(model.table_id)) for model in models]

    def _to_domain(self, model: OrderModel, table_name: str | None) -> Order:
        created_at = model.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        items = [
            OrderItem(
                item_id=OrderItemId(item.id),
                product_id=ProductId(item.product_id),
                name=item.name,
                quantity=item.quantity,
                unit_price=Money(amount_cents=item.unit_price_cents, currency=item.currency),
            )
            for item in model.items
        ]
        return Order(
            order_id=OrderId(model.id),
            table_id=TableId(model.table_id) if model.table_id is not None else None,
            status=OrderStatus(model.status),
            items=items,
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            created_at=created_at,
            table_name=table_name,
            idempotency_key=model.idempotency_key,
            idempotency_hash=model.idempotency_hash,
        )


def _with_items() -> Select:
    return select(OrderModel).options(selectinload(OrderModel.items))
