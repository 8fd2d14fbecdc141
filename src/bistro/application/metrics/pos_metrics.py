from __future__ import annotations

from prometheus_client import Counter, Gauge

from bistro.domain.order.entities import OrderStatus

ORDERS_PLACED_TOTAL = Counter(
    "bistro_orders_placed_total",
    "Total number of orders created, by origin.",
    ["origin"],
)

ORDER_ITEMS_DROPPED_TOTAL = Counter(
    "bistro_order_items_dropped_total",
    "Requested order lines dropped because the product does not exist.",
)

ORDER_TRANSITION_TOTAL = Counter(
    "bistro_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_SAGA_COMPENSATIONS_TOTAL = Counter(
    "bistro_order_saga_compensations_total",
    "Compensating actions executed after a failed order creation step.",
    ["step"],
)

KITCHEN_QUEUE_SIZE = Gauge(
    "bistro_kitchen_queue_size",
    "Current number of active kitchen orders by status.",
    ["status"],
)

TABLE_CORRECTIONS_TOTAL = Counter(
    "bistro_table_corrections_total",
    "Table status/total corrections applied by reconciliation.",
    ["to_status"],
)

GHOST_ORDERS_FINALIZED_TOTAL = Counter(
    "bistro_ghost_orders_finalized_total",
    "Open orders without items finalized by reconciliation.",
)

TABS_CLOSED_TOTAL = Counter(
    "bistro_tabs_closed_total",
    "Tabs closed, by kind.",
    ["kind"],
)

STOCK_ADJUSTMENTS_TOTAL = Counter(
    "bistro_stock_adjustments_total",
    "Manual stock adjustments, by audit outcome.",
    ["audited"],
)


def record_order_placed(counter_sale: bool) -> None:
    ORDERS_PLACED_TOTAL.labels(origin="counter" if counter_sale else "table").inc()


def record_dropped_items(count: int) -> None:
    if count > 0:
        ORDER_ITEMS_DROPPED_TOTAL.inc(count)


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_compensation(step: str) -> None:
    ORDER_SAGA_COMPENSATIONS_TOTAL.labels(step=step).inc()


def record_kitchen_queue_size(counts: dict[str, int]) -> None:
    for status, size in counts.items():
        KITCHEN_QUEUE_SIZE.labels(status=status).set(size)


def record_table_correction(to_status: str) -> None:
    TABLE_CORRECTIONS_TOTAL.labels(to_status=to_status).inc()


def record_ghost_orders(count: int) -> None:
    if count > 0:
        GHOST_ORDERS_FINALIZED_TOTAL.inc(count)


def record_tab_closed(kind: str) -> None:
    TABS_CLOSED_TOTAL.labels(kind=kind).inc()


def record_stock_adjustment(audited: bool) -> None:
    STOCK_ADJUSTMENTS_TOTAL.labels(audited=str(audited).lower()).inc()
