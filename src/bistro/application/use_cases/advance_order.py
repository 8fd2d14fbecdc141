from __future__ import annotations

import logging
from datetime import datetime, timezone

from bistro.application.dto.responses import OrderResponse
from bistro.application.mappers.event_envelope import TOPIC_ORDERS, serialize_order_event
from bistro.application.mappers.order_mapper import to_order_response
from bistro.application.metrics.pos_metrics import record_transition
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderRepository,
    TableRepository,
)
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.get_order import OrderNotFoundError
from bistro.application.use_cases.notify import publish_change
from bistro.application.use_cases.reconcile_tables import TableResync
from bistro.domain.common.ids import OrderId
from bistro.domain.order.entities import (
    Order,
    OrderStatus,
    OrderTransitionError,
)

logger = logging.getLogger(__name__)


class InvalidOrderTransitionError(Exception):
    pass


class ConcurrentOrderUpdateError(Exception):
    pass


class _OrderTransition:
    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
    ) -> None:
        self._order_repository = order_repository
        self._publisher = publisher
        self._table_resync = TableResync(
            table_repository=table_repository,
            order_repository=order_repository,
            publisher=publisher,
        )

    def _load(self, order_id: OrderId) -> Order:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found: {order_id}")
        return order

    def _store(self, current: Order, target: OrderStatus) -> tuple[Order, bool]:
        try:
            updated = self._order_repository.update_status_if(
                order_id=current.order_id,
                expected_status=current.status,
                new_status=target,
            )
            return updated, True
        except OptimisticConcurrencyError as exc:
            latest = self._load(current.order_id)
            if latest.status == target:
                return latest, False
            raise ConcurrentOrderUpdateError(
                f"order {current.order_id} changed concurrently (now {latest.status.value})"
            ) from exc

    def _after(self, before: Order, updated: Order, trace_ctx: TraceContext) -> None:
        record_transition(before.status, updated.status)
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(updated.order_id),
                "from_status": before.status.value,
                "to_status": updated.status.value,
            },
        )
        if updated.table_id is not None and updated.status in (
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ):
            try:
                self._table_resync.execute(updated.table_id, trace_ctx)
            except Exception:
                logger.warning(
                    "table_update_after_transition_failed",
                    extra={"table_id": updated.table_id, "order_id": str(updated.order_id)},
                    exc_info=True,
                )
        publish_change(
            self._publisher,
            TOPIC_ORDERS,
            serialize_order_event(
                event_type=f"order.{updated.status.value}",
                occurred_at=datetime.now(timezone.utc),
                order=updated,
                trace=trace_ctx,
            ),
        )


class AdvanceOrder(_OrderTransition):
    """Moves an order one step forward in the kitchen flow.

    A concurrent advance to the same target is treated as success and
    returns the stored order without repeating side effects.
    """

    def execute(self, order_id: OrderId, trace_ctx: TraceContext) -> OrderResponse:
        order = self._load(order_id)
        try:
            target = order.advance().status
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc

        updated, applied = self._store(order, target)
        if applied:
            self._after(order, updated, trace_ctx)
        return to_order_response(updated)


class CancelOrder(_OrderTransition):
    def execute(self, order_id: OrderId, trace_ctx: TraceContext) -> OrderResponse:
        order = self._load(order_id)
        try:
            target = order.cancel().status
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc

        updated, applied = self._store(order, target)
        if applied:
            self._after(order, updated, trace_ctx)
        return to_order_response(updated)
