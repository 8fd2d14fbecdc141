from __future__ import annotations

import logging
from datetime import datetime, timezone
from urllib.parse import urlencode

from bistro.application.dto.responses import (
    TableListResponse,
    TableQrCodeResponse,
    TableResponse,
)
from bistro.application.mappers.event_envelope import TOPIC_TABLES, serialize_table_event
from bistro.application.mappers.order_mapper import to_order_response
from bistro.application.mappers.table_mapper import to_table_response
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import OrderRepository, TableRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.notify import publish_change
from bistro.application.use_cases.reconcile_tables import ReconcileTables
from bistro.domain.common.ids import TableId
from bistro.domain.common.money import Money
from bistro.domain.table.entities import DiningTable, TableStatus

logger = logging.getLogger(__name__)


class TableNotFoundError(Exception):
    pass


class TableAlreadyExistsError(Exception):
    pass


class ListTables:
    """Heals drifted tables first, then returns the snapshot the floor sees."""

    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
    ) -> None:
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._reconcile = ReconcileTables(
            table_repository=table_repository,
            order_repository=order_repository,
            publisher=publisher,
        )

    def execute(self, trace_ctx: TraceContext) -> TableListResponse:
        self._reconcile.execute(trace_ctx)

        tables = sorted(self._table_repository.list(), key=lambda table: table.table_id)
        counts = {status.value: 0 for status in TableStatus}
        for table in tables:
            counts[table.status.value] += 1

        counter_orders = [
            order for order in self._order_repository.list_open_counter() if order.items
        ]
        return TableListResponse(
            tables=[to_table_response(table) for table in tables],
            counts=counts,
            counterOrders=[to_order_response(order) for order in counter_orders],
        )


class GetTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId) -> TableResponse:
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")
        return to_table_response(table)


class CreateTable:
    def __init__(
        self,
        table_repository: TableRepository,
        publisher: EventPublisher,
        currency: str,
    ) -> None:
        self._table_repository = table_repository
        self._publisher = publisher
        self._currency = currency

    def execute(
        self,
        table_id: TableId,
        name: str | None,
        trace_ctx: TraceContext,
    ) -> TableResponse:
        if self._table_repository.get(table_id) is not None:
            raise TableAlreadyExistsError(f"table {table_id} already exists")

        table = DiningTable(
            table_id=table_id,
            name=(name or "").strip() or f"Mesa {table_id}",
            status=TableStatus.AVAILABLE,
            total=Money.zero(self._currency),
        )
        self._table_repository.add(table)
        logger.info("table_created", extra={"table_id": table_id})
        publish_change(
            self._publisher,
            TOPIC_TABLES,
            serialize_table_event(
                event_type="table.created",
                occurred_at=datetime.now(timezone.utc),
                table=table,
                trace=trace_ctx,
            ),
        )
        return to_table_response(table)


class ListTableQrCodes:
    def __init__(self, table_repository: TableRepository, public_base_url: str) -> None:
        self._table_repository = table_repository
        self._public_base_url = public_base_url.rstrip("/")

    def execute(self) -> list[TableQrCodeResponse]:
        tables = sorted(self._table_repository.list(), key=lambda table: table.table_id)
        return [
            TableQrCodeResponse(
                tableId=table.table_id,
                name=table.name,
                menuUrl=f"{self._public_base_url}/menu?{urlencode({'mesa': table.table_id})}",
            )
            for table in tables
        ]
