from __future__ import annotations

from fastapi import APIRouter, Query

from bistro.api.context import current_trace_context
from bistro.application.dto.responses import KitchenQueueResponse, OrderResponse
from bistro.application.use_cases.advance_order import AdvanceOrder, CancelOrder
from bistro.application.use_cases.kitchen_queue import KitchenArrivalRegistry, KitchenQueue
from bistro.domain.common.ids import OrderId
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()

_arrivals = KitchenArrivalRegistry()


def _kitchen_queue_use_case() -> KitchenQueue:
    return KitchenQueue(order_repository=SqlAlchemyOrderRepository(), arrivals=_arrivals)


def _advance_order_use_case() -> AdvanceOrder:
    return AdvanceOrder(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


def _cancel_order_use_case() -> CancelOrder:
    return CancelOrder(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


@router.get("/v1/kitchen/orders", response_model=KitchenQueueResponse)
def kitchen_queue(
    view_id: str | None = Query(default=None, max_length=64),
) -> KitchenQueueResponse:
    return _kitchen_queue_use_case().execute(view_id=view_id)


@router.post("/v1/kitchen/orders/{order_id}/advance", response_model=OrderResponse)
def advance_order(order_id: str) -> OrderResponse:
    return _advance_order_use_case().execute(
        order_id=OrderId(order_id),
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(order_id: str) -> OrderResponse:
    return _cancel_order_use_case().execute(
        order_id=OrderId(order_id),
        trace_ctx=current_trace_context(),
    )
