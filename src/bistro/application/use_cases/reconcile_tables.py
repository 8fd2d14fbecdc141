from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from bistro.application.dto.responses import ReconciliationResponse
from bistro.application.mappers.event_envelope import TOPIC_TABLES, serialize_table_event
from bistro.application.mappers.table_mapper import to_table_correction_response
from bistro.application.metrics.pos_metrics import record_ghost_orders, record_table_correction
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import OrderRepository, TableRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.notify import publish_change
from bistro.domain.common.ids import TableId
from bistro.domain.order.entities import Order, OrderStatus
from bistro.domain.table.reconciliation import (
    TableReconciliation,
    is_settled_ghost,
    reconcile_table,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TableResync:
    """Re-derives one table from its open orders and writes back any drift."""

    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._clock = clock

    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TableReconciliation | None:
        table = self._table_repository.get(table_id)
        if table is None:
            return None
        orders = self._order_repository.list_open_for_table(table_id)
        result = reconcile_table(table, orders, now=self._clock())
        self.apply(result, trace_ctx)
        return result

    def apply(self, result: TableReconciliation, trace_ctx: TraceContext) -> None:
        if result.ghost_order_ids:
            self._order_repository.set_status(result.ghost_order_ids, OrderStatus.FINALIZED)
            record_ghost_orders(len(result.ghost_order_ids))
            logger.info(
                "ghost_orders_finalized",
                extra={
                    "table_id": result.table.table_id,
                    "order_ids": [str(order_id) for order_id in result.ghost_order_ids],
                },
            )
        if not result.changed:
            return

        self._table_repository.save(result.healed)
        record_table_correction(result.healed.status.value)
        logger.info(
            "table_reconciled",
            extra={
                "table_id": result.table.table_id,
                "from_status": result.table.status.value,
                "to_status": result.healed.status.value,
                "total_cents": result.healed.total.amount_cents,
            },
        )
        publish_change(
            self._publisher,
            TOPIC_TABLES,
            serialize_table_event(
                event_type="table.updated",
                occurred_at=datetime.now(timezone.utc),
                table=result.healed,
                trace=trace_ctx,
            ),
        )


class ReconcileTables:
    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._clock = clock
        self._resync = TableResync(
            table_repository=table_repository,
            order_repository=order_repository,
            publisher=publisher,
            clock=clock,
        )

    def execute(self, trace_ctx: TraceContext) -> ReconciliationResponse:
        tables = self._table_repository.list()
        now = self._clock()
        open_orders = self._order_repository.list_open()

        by_table: dict[TableId, list[Order]] = {}
        counter_ghosts = []
        for order in open_orders:
            if order.table_id is None:
                if is_settled_ghost(order, now):
                    counter_ghosts.append(order.order_id)
                continue
            by_table.setdefault(order.table_id, []).append(order)

        corrections = []
        ghost_ids = list(counter_ghosts)
        if counter_ghosts:
            self._order_repository.set_status(counter_ghosts, OrderStatus.FINALIZED)
            record_ghost_orders(len(counter_ghosts))

        for table in tables:
            result = reconcile_table(table, by_table.get(table.table_id, []), now=now)
            self._resync.apply(result, trace_ctx)
            ghost_ids.extend(result.ghost_order_ids)
            if result.changed:
                corrections.append(to_table_correction_response(result))

        return ReconciliationResponse(
            tablesChecked=len(tables),
            corrections=corrections,
            ghostOrdersFinalized=[str(order_id) for order_id in ghost_ids],
        )
