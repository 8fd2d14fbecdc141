from __future__ import annotations

from typing import TypeVar

from fastapi import APIRouter

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import UpdateItemQuantityRequest
from bistro.application.dto.responses import (
    ReceiptEditResponse,
    ReceiptResponse,
    TabClosedResponse,
    TableResponse,
)
from bistro.application.use_cases.billing import (
    CloseCounterOrder,
    CloseTableTab,
    DeleteOrderItem,
    GetOrderReceipt,
    GetTableReceipt,
    ReleaseTable,
    UpdateItemQuantity,
    BillingUseCase,
)
from bistro.domain.common.ids import OrderId, OrderItemId, TableId
from bistro.infrastructure.config import pos_currency
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()

UseCaseT = TypeVar("UseCaseT", bound=BillingUseCase)


def _billing_use_case(use_case_cls: type[UseCaseT]) -> UseCaseT:
    return use_case_cls(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
        currency=pos_currency(),
    )


@router.get("/v1/tables/{table_id}/receipt", response_model=ReceiptResponse)
def table_receipt(table_id: int) -> ReceiptResponse:
    return _billing_use_case(GetTableReceipt).execute(TableId(table_id))


@router.get("/v1/orders/{order_id}/receipt", response_model=ReceiptResponse)
def order_receipt(order_id: str) -> ReceiptResponse:
    return _billing_use_case(GetOrderReceipt).execute(OrderId(order_id))


@router.patch("/v1/order-items/{item_id}", response_model=ReceiptEditResponse)
def update_item_quantity(
    item_id: str,
    request_dto: UpdateItemQuantityRequest,
) -> ReceiptEditResponse:
    return _billing_use_case(UpdateItemQuantity).execute(
        item_id=OrderItemId(item_id),
        quantity=request_dto.quantity,
        trace_ctx=current_trace_context(),
    )


@router.delete("/v1/order-items/{item_id}", response_model=ReceiptEditResponse)
def delete_order_item(item_id: str) -> ReceiptEditResponse:
    return _billing_use_case(DeleteOrderItem).execute(
        item_id=OrderItemId(item_id),
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/tables/{table_id}/close", response_model=TabClosedResponse)
def close_table(table_id: int) -> TabClosedResponse:
    return _billing_use_case(CloseTableTab).execute(
        table_id=TableId(table_id),
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/orders/{order_id}/close", response_model=TabClosedResponse)
def close_counter_order(order_id: str) -> TabClosedResponse:
    return _billing_use_case(CloseCounterOrder).execute(
        order_id=OrderId(order_id),
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/tables/{table_id}/release", response_model=TableResponse)
def release_table(table_id: int) -> TableResponse:
    return _billing_use_case(ReleaseTable).execute(
        table_id=TableId(table_id),
        trace_ctx=current_trace_context(),
    )
