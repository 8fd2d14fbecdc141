from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from uuid import uuid4

from bistro.application.dto.requests import OrderItemRequest
from bistro.application.dto.responses import OrderResponse
from bistro.application.mappers.event_envelope import TOPIC_ORDERS, serialize_order_event
from bistro.application.mappers.order_mapper import to_order_response
from bistro.application.metrics.pos_metrics import record_dropped_items, record_order_placed
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import (
    CatalogRepository,
    DuplicateIdempotencyKeyError,
    OrderRepository,
    TableRepository,
)
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.notify import publish_change
from bistro.application.use_cases.reconcile_tables import TableResync
from bistro.application.use_cases.saga import Saga, SagaFailedError, SagaStep
from bistro.application.use_cases.tables import TableNotFoundError
from bistro.domain.common.ids import OrderId, OrderItemId, ProductId, TableId
from bistro.domain.order.entities import (
    Order,
    OrderDraft,
    OrderDraftLine,
    OrderItem,
    OrderStatus,
    normalize_quantity,
)

logger = logging.getLogger(__name__)


class NoValidItemsError(Exception):
    pass


class OrderPersistenceError(Exception):
    pass


class IdempotencyReplayMismatchError(Exception):
    pass


class PlaceOrder:
    """Creates an order priced exclusively from the catalog.

    Unknown product ids are dropped instead of failing the request. The order
    row, its items and the stock decrement run as a saga; the table update
    that follows is best effort and is healed by reconciliation.
    """

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        currency: str,
    ) -> None:
        self._catalog_repository = catalog_repository
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._currency = currency
        self._table_resync = TableResync(
            table_repository=table_repository,
            order_repository=order_repository,
            publisher=publisher,
        )

    def execute(
        self,
        table_id: TableId | None,
        items: list[OrderItemRequest],
        trace_ctx: TraceContext,
        idempotency_key: str | None = None,
    ) -> OrderResponse:
        payload_hash = _request_hash(table_id, items) if idempotency_key else None
        if idempotency_key:
            replay = self._replay(idempotency_key, payload_hash)
            if replay is not None:
                return to_order_response(replay)

        if table_id is not None and self._table_repository.get(table_id) is None:
            raise TableNotFoundError(f"table {table_id} not found")

        draft = self._price(table_id, items)
        order = _new_order(draft, self._currency, idempotency_key, payload_hash)

        try:
            self._persist(order, draft)
        except SagaFailedError as exc:
            if idempotency_key and isinstance(exc.__cause__, DuplicateIdempotencyKeyError):
                replay = self._replay(idempotency_key, payload_hash)
                if replay is not None:
                    return to_order_response(replay)
            logger.error(
                "order_persistence_failed",
                extra={
                    "order_id": str(order.order_id),
                    "step": exc.step,
                    "uncompensated": exc.uncompensated,
                },
                exc_info=exc.__cause__,
            )
            raise OrderPersistenceError(
                f"order could not be persisted (step {exc.step} failed)"
            ) from exc

        if table_id is not None:
            try:
                self._table_resync.execute(table_id, trace_ctx)
            except Exception:
                logger.warning(
                    "table_update_after_order_failed",
                    extra={"table_id": table_id, "order_id": str(order.order_id)},
                    exc_info=True,
                )

        record_order_placed(counter_sale=table_id is None)
        logger.info(
            "order_placed",
            extra={
                "order_id": str(order.order_id),
                "table_id": table_id,
                "total_cents": order.total.amount_cents,
            },
        )
        publish_change(
            self._publisher,
            TOPIC_ORDERS,
            serialize_order_event(
                event_type="order.placed",
                occurred_at=order.created_at,
                order=order,
                trace=trace_ctx,
            ),
        )
        return to_order_response(order)

    def _replay(self, key: str, payload_hash: str | None) -> Order | None:
        existing = self._order_repository.get_by_idempotency(key)
        if existing is None:
            return None
        if existing.idempotency_hash != payload_hash:
            raise IdempotencyReplayMismatchError(
                f"idempotency key replay with different payload: {key}"
            )
        return existing

    def _price(self, table_id: TableId | None, items: list[OrderItemRequest]) -> OrderDraft:
        product_ids = list(dict.fromkeys(ProductId(item.product_id) for item in items))
        try:
            products = self._catalog_repository.get_products(product_ids)
        except Exception as exc:
            raise OrderPersistenceError("failed to load products") from exc

        by_id = {product.product_id: product for product in products}
        lines: list[OrderDraftLine] = []
        dropped = 0
        for item in items:
            product = by_id.get(ProductId(item.product_id))
            if product is None:
                dropped += 1
                continue
            lines.append(
                OrderDraftLine(
                    product_id=product.product_id,
                    name=product.name,
                    quantity=normalize_quantity(item.quantity),
                    unit_price=product.price,
                )
            )

        record_dropped_items(dropped)
        if dropped:
            logger.info("order_items_dropped", extra={"table_id": table_id, "count": dropped})
        if not lines:
            raise NoValidItemsError("no valid items found")
        return OrderDraft(table_id=table_id, lines=lines)

    def _persist(self, order: Order, draft: OrderDraft) -> None:
        deltas = draft.stock_deltas()
        restore = {product_id: -delta for product_id, delta in deltas.items()}
        item_ids = [item.item_id for item in order.items]
        Saga(
            [
                SagaStep(
                    name="insert_order",
                    action=lambda: self._order_repository.insert_order(order),
                    compensation=lambda: self._order_repository.delete_order(order.order_id),
                ),
                SagaStep(
                    name="insert_items",
                    action=lambda: self._order_repository.insert_items(
                        order.order_id, order.items
                    ),
                    compensation=lambda: self._order_repository.delete_items(item_ids),
                ),
                SagaStep(
                    name="decrement_stock",
                    action=lambda: self._catalog_repository.apply_stock_deltas(deltas),
                    compensation=lambda: self._catalog_repository.apply_stock_deltas(restore),
                ),
            ]
        ).run()


def _new_order(
    draft: OrderDraft,
    currency: str,
    idempotency_key: str | None,
    payload_hash: str | None,
) -> Order:
    items = [
        OrderItem(
            item_id=OrderItemId(f"oit_{uuid4().hex[:12]}"),
            product_id=line.product_id,
            name=line.name,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )
        for line in draft.lines
    ]
    return Order(
        order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
        table_id=draft.table_id,
        status=OrderStatus.QUEUED,
        items=items,
        total=draft.total(currency),
        created_at=datetime.now(timezone.utc),
        idempotency_key=idempotency_key,
        idempotency_hash=payload_hash,
    )


def _request_hash(table_id: TableId | None, items: list[OrderItemRequest]) -> str:
    normalized_payload = {
        "table_id": table_id,
        "items": [item.model_dump(mode="json") for item in items],
    }
    canonical = json.dumps(normalized_payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
