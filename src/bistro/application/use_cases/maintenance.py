from __future__ import annotations

import logging
from datetime import datetime, timezone

from bistro.application.dto.responses import MaintenanceResponse
from bistro.application.mappers.event_envelope import (
    TOPIC_ORDERS,
    TOPIC_TABLES,
    serialize_event,
)
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import OrderRepository, TableRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.notify import publish_change

logger = logging.getLogger(__name__)

RESET_CONFIRMATION = "RESET"


class ResetNotConfirmedError(Exception):
    pass


def _announce(
    publisher: EventPublisher,
    topic: str,
    event_type: str,
    payload: dict,
    trace_ctx: TraceContext,
) -> None:
    publish_change(
        publisher,
        topic,
        serialize_event(
            event_type=event_type,
            occurred_at=datetime.now(timezone.utc),
            topic=topic,
            payload=payload,
            trace=trace_ctx,
        ),
    )


class ClearHistory:
    """Deletes finalized orders and their items."""

    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(self, trace_ctx: TraceContext) -> MaintenanceResponse:
        deleted = self._order_repository.delete_finalized()
        logger.warning("order_history_cleared", extra={"orders_deleted": deleted})
        _announce(
            self._publisher,
            TOPIC_ORDERS,
            "orders.history_cleared",
            {"ordersDeleted": deleted},
            trace_ctx,
        )
        return MaintenanceResponse(ordersDeleted=deleted)


class ResetOperationalData:
    """Deletes every order and frees every table."""

    def __init__(
        self,
        order_repository: OrderRepository,
        table_repository: TableRepository,
        publisher: EventPublisher,
    ) -> None:
        self._order_repository = order_repository
        self._table_repository = table_repository
        self._publisher = publisher

    def execute(self, confirm: str, trace_ctx: TraceContext) -> MaintenanceResponse:
        if confirm != RESET_CONFIRMATION:
            raise ResetNotConfirmedError(f"type {RESET_CONFIRMATION} to confirm the reset")

        deleted = self._order_repository.delete_all()
        freed = self._table_repository.free_all()
        logger.warning(
            "operational_data_reset",
            extra={"orders_deleted": deleted, "tables_freed": freed},
        )
        _announce(
            self._publisher, TOPIC_ORDERS, "orders.reset", {"ordersDeleted": deleted}, trace_ctx
        )
        _announce(self._publisher, TOPIC_TABLES, "tables.reset", {"tablesFreed": freed}, trace_ctx)
        return MaintenanceResponse(ordersDeleted=deleted, tablesFreed=freed)
