from __future__ import annotations

from fastapi import APIRouter, Header, Query

from bistro.api.context import current_trace_context
from bistro.api.routes.catalog import get_menu_use_case
from bistro.api.routes.orders import place_order_use_case
from bistro.application.dto.requests import CounterOrderRequest
from bistro.application.dto.responses import CreateOrderResponse, PublicMenuResponse
from bistro.application.use_cases.public_menu import (
    GetPublicMenu,
    parse_table_param,
    require_table_param,
)

router = APIRouter()


@router.get("/menu", response_model=PublicMenuResponse)
def public_menu(
    mesa: str | None = Query(default=None),
    table: str | None = Query(default=None),
) -> PublicMenuResponse:
    return GetPublicMenu(get_menu=get_menu_use_case()).execute(parse_table_param(mesa, table))


@router.post("/menu/checkout", response_model=CreateOrderResponse)
def public_checkout(
    request_dto: CounterOrderRequest,
    mesa: str | None = Query(default=None),
    table: str | None = Query(default=None),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> CreateOrderResponse:
    table_id = require_table_param(mesa, table)
    order = place_order_use_case().execute(
        table_id=table_id,
        items=request_dto.items,
        trace_ctx=current_trace_context(),
        idempotency_key=idempotency_key,
    )
    return CreateOrderResponse(orderId=order.orderId)
