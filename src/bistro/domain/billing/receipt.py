from __future__ import annotations

from dataclasses import dataclass, replace

from bistro.domain.common.ids import OrderId, OrderItemId, TableId
from bistro.domain.common.money import Money
from bistro.domain.order.entities import Order, OrderItem, items_total


class ReceiptItemNotFoundError(Exception):
    pass


@dataclass(frozen=True)
class Receipt:
    """Consolidated bill for a table (all open orders) or one counter order."""

    table_id: TableId | None
    orders: list[Order]
    currency: str

    @classmethod
    def for_orders(cls, table_id: TableId | None, orders: list[Order], currency: str) -> Receipt:
        billable = [order for order in orders if order.is_open and order.items]
        return cls(table_id=table_id, orders=billable, currency=currency)

    @property
    def order_ids(self) -> list[OrderId]:
        return [order.order_id for order in self.orders]

    @property
    def items(self) -> list[OrderItem]:
        return [item for order in self.orders for item in order.items]

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total(self) -> Money:
        return items_total(self.items, self.currency)

    def order_for_item(self, item_id: OrderItemId) -> Order:
        for order in self.orders:
            if any(item.item_id == item_id for item in order.items):
                return order
        raise ReceiptItemNotFoundError(f"order item {item_id} is not on this receipt")

    def with_quantity(self, item_id: OrderItemId, quantity: int) -> Receipt:
        owner = self.order_for_item(item_id)
        items = [
            item.with_quantity(quantity) if item.item_id == item_id else item
            for item in owner.items
        ]
        return self._replace_order(owner, items)

    def without_item(self, item_id: OrderItemId) -> Receipt:
        owner = self.order_for_item(item_id)
        items = [item for item in owner.items if item.item_id != item_id]
        return self._replace_order(owner, items)

    def _replace_order(self, owner: Order, items: list[OrderItem]) -> Receipt:
        edited = replace(owner, items=items, total=items_total(items, self.currency))
        orders = [edited if order.order_id == owner.order_id else order for order in self.orders]
        return replace(self, orders=orders)
