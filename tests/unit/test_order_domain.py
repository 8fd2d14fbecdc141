from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from bistro.domain.common.money import Money
from bistro.domain.order.entities import (
    OrderDraft,
    OrderDraftLine,
    OrderStatus,
    OrderTransitionError,
    next_kitchen_status,
    normalize_quantity,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 1), (0, 1), (-3, 1), ("abc", 1), (True, 1), ("2", 2), ("2.7", 2), (4, 4)],
)
def test_normalize_quantity_defaults_invalid_values_to_one(raw: object, expected: int) -> None:
    assert normalize_quantity(raw) == expected


def test_kitchen_flow_moves_one_step_forward() -> None:
    assert next_kitchen_status(OrderStatus.QUEUED) == OrderStatus.PREPARING
    assert next_kitchen_status(OrderStatus.PREPARING) == OrderStatus.READY
    assert next_kitchen_status(OrderStatus.READY) == OrderStatus.DELIVERED


@pytest.mark.parametrize(
    "status",
    [OrderStatus.DELIVERED, OrderStatus.FINALIZED, OrderStatus.CANCELLED],
)
def test_kitchen_flow_rejects_terminal_states(status: OrderStatus) -> None:
    with pytest.raises(OrderTransitionError):
        next_kitchen_status(status)


def test_cancel_only_from_active_kitchen_states(make_order) -> None:
    assert make_order("ord_1", 1, [("a", 100, 1)]).cancel().status == OrderStatus.CANCELLED
    delivered = make_order("ord_2", 1, [("a", 100, 1)], status=OrderStatus.DELIVERED)
    with pytest.raises(OrderTransitionError):
        delivered.cancel()


def test_ghost_order_is_open_without_items(make_order) -> None:
    assert make_order("ord_1", 1, []).is_ghost
    assert not make_order("ord_2", 1, [("a", 100, 1)]).is_ghost
    assert not make_order("ord_3", 1, [], status=OrderStatus.FINALIZED).is_ghost


def test_draft_totals_and_stock_deltas_merge_repeated_products() -> None:
    price = Money(amount_cents=750, currency="BRL")
    draft = OrderDraft(
        table_id=None,
        lines=[
            OrderDraftLine(product_id="prd_a", name="A", quantity=2, unit_price=price),
            OrderDraftLine(product_id="prd_a", name="A", quantity=1, unit_price=price),
        ],
    )
    assert draft.total("BRL").amount_cents == 2250
    assert draft.stock_deltas() == {"prd_a": -3}


def test_money_rejects_mixed_currencies() -> None:
    with pytest.raises(ValueError):
        Money(amount_cents=100, currency="BRL").plus(Money(amount_cents=100, currency="USD"))
    with pytest.raises(ValueError):
        Money(amount_cents=-1, currency="BRL")
