from __future__ import annotations

from fastapi import APIRouter, Header

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import CounterOrderRequest, CreateOrderRequest
from bistro.application.dto.responses import CreateOrderResponse, OrderResponse
from bistro.application.use_cases.get_order import GetOrder
from bistro.application.use_cases.place_order import PlaceOrder
from bistro.domain.common.ids import OrderId, TableId
from bistro.infrastructure.config import pos_currency
from bistro.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogRepository
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def place_order_use_case() -> PlaceOrder:
    return PlaceOrder(
        catalog_repository=SqlAlchemyCatalogRepository(),
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
        currency=pos_currency(),
    )


def _get_order_use_case() -> GetOrder:
    return GetOrder(order_repository=SqlAlchemyOrderRepository())


@router.post("/api/orders", response_model=CreateOrderResponse)
def create_order(
    request_dto: CreateOrderRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> CreateOrderResponse:
    order = place_order_use_case().execute(
        table_id=TableId(request_dto.table_id),
        items=request_dto.items,
        trace_ctx=current_trace_context(),
        idempotency_key=idempotency_key,
    )
    return CreateOrderResponse(orderId=order.orderId)


@router.post("/v1/counter/orders", response_model=CreateOrderResponse)
def create_counter_order(
    request_dto: CounterOrderRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> CreateOrderResponse:
    order = place_order_use_case().execute(
        table_id=None,
        items=request_dto.items,
        trace_ctx=current_trace_context(),
        idempotency_key=idempotency_key,
    )
    return CreateOrderResponse(orderId=order.orderId)


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str) -> OrderResponse:
    return _get_order_use_case().execute(order_id=OrderId(order_id))
