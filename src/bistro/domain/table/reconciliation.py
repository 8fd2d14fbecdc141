from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from bistro.domain.common.ids import OrderId
from bistro.domain.common.money import Money
from bistro.domain.order.entities import Order, items_total
from bistro.domain.table.entities import DiningTable, TableStatus

# Checkout commits the order row before its items.
GHOST_GRACE_PERIOD = timedelta(seconds=30)


@dataclass(frozen=True)
class TableReconciliation:
    table: DiningTable
    healed: DiningTable
    ghost_order_ids: list[OrderId] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.healed != self.table


def derive_open_total(orders: list[Order], currency: str) -> Money:
    total = Money.zero(currency)
    for order in orders:
        if order.is_open:
            total = total.plus(items_total(order.items, currency))
    return total


def is_settled_ghost(
    order: Order, now: datetime, grace: timedelta = GHOST_GRACE_PERIOD
) -> bool:
    return order.is_ghost and now - order.created_at >= grace


def reconcile_table(
    table: DiningTable,
    orders: list[Order],
    now: datetime,
    grace: timedelta = GHOST_GRACE_PERIOD,
) -> TableReconciliation:
    """Re-derive a table's status and total from its open orders.

    Open orders without items are ghosts left behind by a failed checkout;
    they are reported for finalization and never count towards the total.
    Item-less orders younger than ``grace`` may still be mid-checkout: they
    are left open and the table status is not changed on their account.
    """
    currency = table.total.currency
    open_orders = [order for order in orders if order.is_open]
    ghosts = [order for order in open_orders if order.is_ghost]
    ghost_ids = [order.order_id for order in ghosts if is_settled_ghost(order, now, grace)]
    real_orders = [order for order in open_orders if not order.is_ghost]
    pending = len(ghost_ids) < len(ghosts)

    if real_orders:
        total = derive_open_total(real_orders, currency)
        healed = table
        if table.status != TableStatus.OCCUPIED or table.total != total:
            healed = table.occupy(total)
        return TableReconciliation(table=table, healed=healed, ghost_order_ids=ghost_ids)

    if pending:
        healed = table
    elif table.status == TableStatus.OCCUPIED:
        healed = table.mark_dirty()
    elif table.total.amount_cents != 0:
        healed = DiningTable(
            table_id=table.table_id,
            name=table.name,
            status=table.status,
            total=Money.zero(currency),
        )
    else:
        healed = table
    return TableReconciliation(table=table, healed=healed, ghost_order_ids=ghost_ids)
