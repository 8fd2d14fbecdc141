from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path
from typing import Callable

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fakes import (
    CURRENCY,
    NOW,
    FakeCache,
    FakeCatalogRepository,
    FakeOrderRepository,
    FakePublisher,
    FakeTableRepository,
    brl,
)

from bistro.application.use_cases.context import TraceContext
from bistro.domain.common.ids import CategoryId, OrderId, OrderItemId, ProductId, TableId
from bistro.domain.common.money import Money
from bistro.domain.menu.entities import Category, Product, ProductStatus
from bistro.domain.order.entities import Order, OrderItem, OrderStatus
from bistro.domain.table.entities import DiningTable, TableStatus


@pytest.fixture
def trace_ctx() -> TraceContext:
    return TraceContext(trace_id="trace-1", request_id="req-1")


@pytest.fixture
def catalog_repo() -> FakeCatalogRepository:
    repository = FakeCatalogRepository()
    repository.add_category(Category(category_id=CategoryId("cat_main"), name="Pratos"))
    repository.add_product(
        Product(
            product_id=ProductId("prd_burger"),
            name="Burger",
            price=brl(2500),
            stock_quantity=10,
            status=ProductStatus.ACTIVE,
            category_id=CategoryId("cat_main"),
            category_name="Pratos",
        )
    )
    repository.add_product(
        Product(
            product_id=ProductId("prd_soda"),
            name="Soda",
            price=brl(600),
            stock_quantity=3,
            status=ProductStatus.ACTIVE,
        )
    )
    repository.add_product(
        Product(
            product_id=ProductId("prd_paused"),
            name="Seasonal Pie",
            price=brl(1800),
            stock_quantity=0,
            status=ProductStatus.PAUSED,
        )
    )
    return repository


@pytest.fixture
def table_repo() -> FakeTableRepository:
    repository = FakeTableRepository()
    for number in (1, 2):
        repository.add(
            DiningTable(
                table_id=TableId(number),
                name=f"Mesa {number}",
                status=TableStatus.AVAILABLE,
                total=Money.zero(CURRENCY),
            )
        )
    return repository


@pytest.fixture
def order_repo() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Build an order from ``(item_id, unit_cents, quantity)`` lines."""

    def _make(
        order_id: str,
        table_id: int | None,
        lines: list[tuple[str, int, int]],
        status: OrderStatus = OrderStatus.QUEUED,
        age_minutes: int = 1,
    ) -> Order:
        items = [
            OrderItem(
                item_id=OrderItemId(item_id),
                product_id=ProductId(f"prd_{item_id}"),
                name=item_id.title(),
                quantity=quantity,
                unit_price=brl(unit_cents),
            )
            for item_id, unit_cents, quantity in lines
        ]
        total = sum(unit_cents * quantity for _, unit_cents, quantity in lines)
        return Order(
            order_id=OrderId(order_id),
            table_id=TableId(table_id) if table_id is not None else None,
            status=status,
            items=items,
            total=brl(total),
            created_at=NOW - timedelta(minutes=age_minutes),
        )

    return _make
