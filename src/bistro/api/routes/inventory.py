from __future__ import annotations

from fastapi import APIRouter, Query

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import StockAdjustmentRequest
from bistro.application.dto.responses import (
    InventoryLogResponse,
    InventoryOverviewResponse,
    StockAdjustmentResponse,
)
from bistro.application.use_cases.adjust_stock import (
    AdjustStock,
    GetInventoryOverview,
    ListInventoryLogs,
)
from bistro.domain.common.ids import ProductId
from bistro.infrastructure.cache.cache_store import RedisCacheStore
from bistro.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogRepository
from bistro.infrastructure.db.repositories.inventory_repo import (
    SqlAlchemyInventoryLogRepository,
)
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def _adjust_stock_use_case() -> AdjustStock:
    return AdjustStock(
        catalog_repository=SqlAlchemyCatalogRepository(),
        log_repository=SqlAlchemyInventoryLogRepository(),
        cache=RedisCacheStore(),
        publisher=RedisEventPublisher(),
    )


@router.post(
    "/v1/products/{product_id}/stock-adjustments",
    response_model=StockAdjustmentResponse,
)
def adjust_stock(product_id: str, request_dto: StockAdjustmentRequest) -> StockAdjustmentResponse:
    return _adjust_stock_use_case().execute(
        product_id=ProductId(product_id),
        delta=request_dto.delta,
        reason=request_dto.reason,
        trace_ctx=current_trace_context(),
    )


@router.get("/v1/inventory", response_model=InventoryOverviewResponse)
def inventory_overview() -> InventoryOverviewResponse:
    return GetInventoryOverview(catalog_repository=SqlAlchemyCatalogRepository()).execute()


@router.get("/v1/inventory/logs", response_model=list[InventoryLogResponse])
def inventory_logs(limit: int = Query(default=50)) -> list[InventoryLogResponse]:
    return ListInventoryLogs(log_repository=SqlAlchemyInventoryLogRepository()).execute(limit)
