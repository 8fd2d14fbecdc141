from __future__ import annotations

from bistro.application.dto.responses import OrderResponse
from bistro.application.mappers.order_mapper import to_order_response
from bistro.application.ports.repositories import OrderRepository
from bistro.domain.common.ids import OrderId


class OrderNotFoundError(Exception):
    pass


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found: {order_id}")
        return to_order_response(order)
