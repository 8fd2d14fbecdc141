from __future__ import annotations

import logging
from datetime import datetime, timezone

from bistro.application.dto.responses import (
    ReceiptEditResponse,
    ReceiptResponse,
    TabClosedResponse,
    TableResponse,
)
from bistro.application.mappers.event_envelope import (
    TOPIC_ORDERS,
    TOPIC_TABLES,
    serialize_event,
    serialize_table_event,
)
from bistro.application.mappers.order_mapper import to_receipt_response
from bistro.application.mappers.table_mapper import to_table_response
from bistro.application.metrics.pos_metrics import record_tab_closed
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import OrderRepository, TableRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.get_order import OrderNotFoundError
from bistro.application.use_cases.notify import publish_change
from bistro.application.use_cases.tables import TableNotFoundError
from bistro.domain.billing.receipt import Receipt
from bistro.domain.common.ids import OrderId, OrderItemId, TableId
from bistro.domain.order.entities import Order, OrderStatus
from bistro.domain.table.entities import DiningTable, TableOccupiedError

logger = logging.getLogger(__name__)


class EmptyReceiptError(Exception):
    pass


class OrderItemNotFoundError(Exception):
    pass


class OrderNotOpenError(Exception):
    pass


class NotACounterOrderError(Exception):
    pass


class TableStillOccupiedError(Exception):
    pass


class BillingPersistenceError(Exception):
    pass


class BillingUseCase:
    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        currency: str,
    ) -> None:
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._currency = currency

    def _table(self, table_id: TableId) -> DiningTable:
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")
        return table

    def _table_receipt(self, table_id: TableId) -> Receipt:
        orders = self._order_repository.list_open_for_table(table_id)
        return Receipt.for_orders(table_id, orders, self._currency)

    def _receipt_for_order(self, order: Order) -> Receipt:
        if order.table_id is not None:
            return self._table_receipt(order.table_id)
        return Receipt.for_orders(None, [order], self._currency)

    def _open_order_for_item(self, item_id: OrderItemId) -> Order:
        order = self._order_repository.find_by_item(item_id)
        if order is None:
            raise OrderItemNotFoundError(f"order item not found: {item_id}")
        if not order.is_open:
            raise OrderNotOpenError(f"order {order.order_id} is {order.status.value}")
        return order

    def _publish_orders(
        self,
        event_type: str,
        order_ids: list[OrderId],
        table_id: TableId | None,
        trace_ctx: TraceContext,
    ) -> None:
        publish_change(
            self._publisher,
            TOPIC_ORDERS,
            serialize_event(
                event_type=event_type,
                occurred_at=datetime.now(timezone.utc),
                topic=TOPIC_ORDERS,
                trace=trace_ctx,
                payload={
                    "orderIds": [str(order_id) for order_id in order_ids],
                    "tableId": table_id,
                },
            ),
        )

    def _publish_table(self, table: DiningTable, trace_ctx: TraceContext) -> None:
        publish_change(
            self._publisher,
            TOPIC_TABLES,
            serialize_table_event(
                event_type="table.updated",
                occurred_at=datetime.now(timezone.utc),
                table=table,
                trace=trace_ctx,
            ),
        )


class GetTableReceipt(BillingUseCase):
    def execute(self, table_id: TableId) -> ReceiptResponse:
        self._table(table_id)
        receipt = self._table_receipt(table_id)
        if receipt.is_empty:
            raise EmptyReceiptError(f"table {table_id} has no open items")
        return to_receipt_response(receipt)


class GetOrderReceipt(BillingUseCase):
    def execute(self, order_id: OrderId) -> ReceiptResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found: {order_id}")
        receipt = Receipt.for_orders(order.table_id, [order], self._currency)
        if receipt.is_empty:
            raise EmptyReceiptError(f"order {order_id} has no open items")
        return to_receipt_response(receipt)


class UpdateItemQuantity(BillingUseCase):
    """Edits one receipt line.

    The edited receipt is computed before anything is written, and the order
    and table totals are derived from it rather than re-read. When a write
    fails the previously displayed receipt remains the authoritative one.
    """

    def execute(
        self,
        item_id: OrderItemId,
        quantity: int,
        trace_ctx: TraceContext,
    ) -> ReceiptEditResponse:
        order = self._open_order_for_item(item_id)
        receipt = self._receipt_for_order(order)
        edited = receipt.with_quantity(item_id, quantity)
        owner = edited.order_for_item(item_id)

        table: DiningTable | None = None
        try:
            self._order_repository.update_item_quantity(item_id, quantity)
            self._order_repository.update_total(owner.order_id, owner.total)
            if order.table_id is not None:
                table = self._table(order.table_id).occupy(edited.total)
                self._table_repository.save(table)
        except TableNotFoundError:
            raise
        except Exception as exc:
            logger.error(
                "receipt_edit_failed",
                extra={"item_id": str(item_id), "order_id": str(owner.order_id)},
                exc_info=True,
            )
            raise BillingPersistenceError("failed to update item quantity") from exc

        logger.info(
            "order_item_quantity_updated",
            extra={
                "item_id": str(item_id),
                "order_id": str(owner.order_id),
                "quantity": quantity,
                "total_cents": edited.total.amount_cents,
            },
        )
        self._publish_orders("order.updated", [owner.order_id], order.table_id, trace_ctx)
        if table is not None:
            self._publish_table(table, trace_ctx)
        return ReceiptEditResponse(
            receipt=to_receipt_response(edited),
            tabClosed=False,
            tableStatus=table.status.value if table is not None else None,
        )


class DeleteOrderItem(BillingUseCase):
    """Removes one receipt line.

    Removing the last line of a tab closes it: every open order of the table
    is finalized and the table is freed. A counter order is finalized.
    """

    def _orders_to_finalize(self, order: Order) -> list[OrderId]:
        if order.table_id is None:
            return [order.order_id]
        # Item-less orders never reach the receipt but still belong to the tab.
        return [
            open_order.order_id
            for open_order in self._order_repository.list_open_for_table(order.table_id)
        ]

    def execute(self, item_id: OrderItemId, trace_ctx: TraceContext) -> ReceiptEditResponse:
        order = self._open_order_for_item(item_id)
        receipt = self._receipt_for_order(order)
        edited = receipt.without_item(item_id)
        owner = next(o for o in edited.orders if o.order_id == order.order_id)

        table: DiningTable | None = None
        finalized: list[OrderId] = []
        try:
            self._order_repository.delete_items([item_id])
            if edited.is_empty:
                finalized = self._orders_to_finalize(order)
                self._order_repository.set_status(finalized, OrderStatus.FINALIZED)
                if order.table_id is not None:
                    table = self._table(order.table_id).free()
                    self._table_repository.save(table)
            else:
                self._order_repository.update_total(owner.order_id, owner.total)
                if not owner.items:
                    finalized = [owner.order_id]
                    self._order_repository.set_status(finalized, OrderStatus.FINALIZED)
                if order.table_id is not None:
                    table = self._table(order.table_id).occupy(edited.total)
                    self._table_repository.save(table)
        except TableNotFoundError:
            raise
        except Exception as exc:
            logger.error(
                "receipt_edit_failed",
                extra={"item_id": str(item_id), "order_id": str(order.order_id)},
                exc_info=True,
            )
            raise BillingPersistenceError("failed to remove order item") from exc

        logger.info(
            "order_item_removed",
            extra={
                "item_id": str(item_id),
                "order_id": str(order.order_id),
                "tab_closed": edited.is_empty,
            },
        )
        if edited.is_empty:
            record_tab_closed("counter" if order.table_id is None else "table")
            self._publish_orders("order.finalized", finalized, order.table_id, trace_ctx)
        else:
            self._publish_orders("order.updated", [owner.order_id], order.table_id, trace_ctx)
        if table is not None:
            self._publish_table(table, trace_ctx)

        return ReceiptEditResponse(
            receipt=to_receipt_response(edited),
            tabClosed=edited.is_empty,
            tableStatus=table.status.value if table is not None else None,
        )


class CloseTableTab(BillingUseCase):
    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TabClosedResponse:
        table = self._table(table_id)
        # Re-read right before finalizing so orders placed after the receipt
        # was opened are closed with the tab.
        open_ids = [
            order.order_id for order in self._order_repository.list_open_for_table(table_id)
        ]
        try:
            if open_ids:
                self._order_repository.set_status(open_ids, OrderStatus.FINALIZED)
            closed = table.mark_dirty()
            self._table_repository.save(closed)
        except Exception as exc:
            logger.error(
                "tab_close_failed",
                extra={"table_id": table_id, "order_ids": [str(i) for i in open_ids]},
                exc_info=True,
            )
            raise BillingPersistenceError(f"failed to close table {table_id}") from exc

        record_tab_closed("table")
        logger.info("tab_closed", extra={"table_id": table_id, "orders": len(open_ids)})
        self._publish_orders("order.finalized", open_ids, table_id, trace_ctx)
        self._publish_table(closed, trace_ctx)
        return TabClosedResponse(
            tableId=table_id,
            finalizedOrderIds=[str(order_id) for order_id in open_ids],
            tableStatus=closed.status.value,
        )


class CloseCounterOrder(BillingUseCase):
    def execute(self, order_id: OrderId, trace_ctx: TraceContext) -> TabClosedResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found: {order_id}")
        if not order.is_counter_sale:
            raise NotACounterOrderError(
                f"order {order_id} belongs to table {order.table_id}; close the table tab"
            )
        if not order.is_open:
            raise OrderNotOpenError(f"order {order_id} is {order.status.value}")

        try:
            self._order_repository.set_status([order_id], OrderStatus.FINALIZED)
        except Exception as exc:
            logger.error("tab_close_failed", extra={"order_id": str(order_id)}, exc_info=True)
            raise BillingPersistenceError(f"failed to close order {order_id}") from exc

        record_tab_closed("counter")
        logger.info("counter_order_closed", extra={"order_id": str(order_id)})
        self._publish_orders("order.finalized", [order_id], None, trace_ctx)
        return TabClosedResponse(tableId=None, finalizedOrderIds=[str(order_id)])


class ReleaseTable(BillingUseCase):
    """Confirms cleanup of a closed table and makes it available again."""

    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TableResponse:
        table = self._table(table_id)
        try:
            released = table.release()
        except TableOccupiedError as exc:
            raise TableStillOccupiedError(str(exc)) from exc

        self._table_repository.save(released)
        logger.info("table_released", extra={"table_id": table_id})
        self._publish_table(released, trace_ctx)
        return to_table_response(released)
