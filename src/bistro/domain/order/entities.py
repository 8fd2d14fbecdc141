from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from bistro.domain.common.ids import OrderId, OrderItemId, ProductId, TableId
from bistro.domain.common.money import Money


class OrderStatus(str, Enum):
    QUEUED = "queued"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"


KITCHEN_FLOW: tuple[OrderStatus, ...] = (
    OrderStatus.QUEUED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
)

ACTIVE_KITCHEN_STATUSES = frozenset(
    {OrderStatus.QUEUED, OrderStatus.PREPARING, OrderStatus.READY}
)
CLOSED_STATUSES = frozenset({OrderStatus.FINALIZED, OrderStatus.CANCELLED})


class OrderTransitionError(Exception):
    pass


def next_kitchen_status(status: OrderStatus) -> OrderStatus:
    """Return the single forward step of the kitchen flow.

    Orders that are delivered, finalized or cancelled have no next kitchen
    state and raise ``OrderTransitionError``.
    """
    try:
        position = KITCHEN_FLOW.index(status)
    except ValueError:
        raise OrderTransitionError(f"cannot advance order from status={status.value}") from None
    if position == len(KITCHEN_FLOW) - 1:
        raise OrderTransitionError(f"cannot advance order from status={status.value}")
    return KITCHEN_FLOW[position + 1]


@dataclass(frozen=True)
class OrderItem:
    item_id: OrderItemId
    product_id: ProductId
    name: str
    quantity: int
    unit_price: Money

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)

    def with_quantity(self, quantity: int) -> OrderItem:
        return replace(self, quantity=quantity)


def items_total(items: list[OrderItem], currency: str) -> Money:
    total = Money.zero(currency)
    for item in items:
        total = total.plus(item.line_total)
    return total


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    table_id: TableId | None
    status: OrderStatus
    items: list[OrderItem]
    total: Money
    created_at: datetime
    table_name: str | None = None
    idempotency_key: str | None = None
    idempotency_hash: str | None = None

    @property
    def is_counter_sale(self) -> bool:
        return self.table_id is None

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_STATUSES

    @property
    def is_ghost(self) -> bool:
        return self.is_open and not self.items

    def advance(self) -> Order:
        return replace(self, status=next_kitchen_status(self.status))

    def cancel(self) -> Order:
        if self.status not in ACTIVE_KITCHEN_STATUSES:
            raise OrderTransitionError(f"cannot cancel order from status={self.status.value}")
        return replace(self, status=OrderStatus.CANCELLED)


@dataclass(frozen=True)
class OrderDraftLine:
    product_id: ProductId
    name: str
    quantity: int
    unit_price: Money


@dataclass(frozen=True)
class OrderDraft:
    """Priced cart ready to be persisted; prices come from the catalog only."""

    table_id: TableId | None
    lines: list[OrderDraftLine] = field(default_factory=list)

    def total(self, currency: str) -> Money:
        total = Money.zero(currency)
        for line in self.lines:
            total = total.plus(line.unit_price.times(line.quantity))
        return total

    def stock_deltas(self) -> dict[ProductId, int]:
        deltas: dict[ProductId, int] = {}
        for line in self.lines:
            deltas[line.product_id] = deltas.get(line.product_id, 0) - line.quantity
        return deltas


def normalize_quantity(value: object) -> int:
    """Coerce a requested quantity; anything missing or invalid becomes 1."""
    if value is None or isinstance(value, bool):
        return 1
    try:
        if isinstance(value, str):
            quantity = int(float(value.strip()))
        else:
            quantity = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, quantity)
