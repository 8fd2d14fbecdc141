from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from bistro.application.dto.responses import (
    InventoryLogResponse,
    InventoryOverviewResponse,
    StockAdjustmentResponse,
)
from bistro.application.mappers.event_envelope import (
    TOPIC_INVENTORY_LOGS,
    TOPIC_PRODUCTS,
    serialize_event,
)
from bistro.application.mappers.menu_mapper import to_product_response
from bistro.application.metrics.pos_metrics import record_stock_adjustment
from bistro.application.ports.cache import CacheStore
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import CatalogRepository, InventoryLogRepository
from bistro.application.use_cases.catalog import ProductNotFoundError
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.get_menu import invalidate_menu_cache
from bistro.application.use_cases.notify import publish_change
from bistro.domain.common.ids import InventoryLogId, ProductId
from bistro.domain.inventory.entities import InventoryLog, StockAdjustment

logger = logging.getLogger(__name__)

MAX_LOG_LIMIT = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvalidLogLimitError(Exception):
    pass


class AdjustStock:
    """Applies a manual stock delta and appends the audit log row.

    The two writes are independent. A failed log insert leaves the stock
    change in place and reports it as unaudited.
    """

    def __init__(
        self,
        catalog_repository: CatalogRepository,
        log_repository: InventoryLogRepository,
        cache: CacheStore,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._catalog_repository = catalog_repository
        self._log_repository = log_repository
        self._cache = cache
        self._publisher = publisher
        self._clock = clock

    def execute(
        self,
        product_id: ProductId,
        delta: int,
        reason: str,
        trace_ctx: TraceContext,
    ) -> StockAdjustmentResponse:
        adjustment = StockAdjustment(product_id=product_id, delta=delta, reason=reason)
        product = self._catalog_repository.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(f"product not found: {product_id}")

        self._catalog_repository.apply_stock_deltas({product_id: adjustment.delta})
        adjusted = product.adjust_stock(adjustment.delta)
        invalidate_menu_cache(self._cache)

        log = InventoryLog(
            log_id=InventoryLogId(f"inv_{uuid4().hex[:12]}"),
            product_id=product_id,
            change_amount=adjustment.delta,
            reason=adjustment.reason,
            created_at=self._clock(),
            product_name=product.name,
        )
        audited = True
        try:
            self._log_repository.add(log)
        except Exception:
            audited = False
            logger.error(
                "inventory_log_insert_failed",
                extra={"product_id": str(product_id), "delta": adjustment.delta},
                exc_info=True,
            )

        record_stock_adjustment(audited)
        logger.info(
            "stock_adjusted",
            extra={
                "product_id": str(product_id),
                "delta": adjustment.delta,
                "stock_quantity": adjusted.stock_quantity,
                "audited": audited,
            },
        )
        self._publish(TOPIC_PRODUCTS, "product.stock_adjusted", adjusted.product_id, trace_ctx)
        if audited:
            self._publish(TOPIC_INVENTORY_LOGS, "inventory_log.created", product_id, trace_ctx)
        return StockAdjustmentResponse(product=to_product_response(adjusted), audited=audited)

    def _publish(
        self,
        topic: str,
        event_type: str,
        product_id: ProductId,
        trace_ctx: TraceContext,
    ) -> None:
        publish_change(
            self._publisher,
            topic,
            serialize_event(
                event_type=event_type,
                occurred_at=self._clock(),
                topic=topic,
                payload={"productId": product_id},
                trace=trace_ctx,
            ),
        )


class GetInventoryOverview:
    def __init__(self, catalog_repository: CatalogRepository) -> None:
        self._catalog_repository = catalog_repository

    def execute(self) -> InventoryOverviewResponse:
        products = sorted(
            self._catalog_repository.list_products(),
            key=lambda product: (product.stock_quantity, product.name),
        )
        return InventoryOverviewResponse(
            products=[to_product_response(product) for product in products],
            lowStockCount=sum(1 for product in products if product.is_low_stock),
            totalUnits=sum(product.stock_quantity for product in products),
        )


class ListInventoryLogs:
    def __init__(self, log_repository: InventoryLogRepository) -> None:
        self._log_repository = log_repository

    def execute(self, limit: int = 50) -> list[InventoryLogResponse]:
        if limit < 1 or limit > MAX_LOG_LIMIT:
            raise InvalidLogLimitError(f"limit must be between 1 and {MAX_LOG_LIMIT}")
        return [
            InventoryLogResponse(
                logId=str(log.log_id),
                productId=str(log.product_id),
                productName=log.product_name,
                changeAmount=log.change_amount,
                reason=log.reason,
                createdAt=log.created_at,
            )
            for log in self._log_repository.list_recent(limit)
        ]
