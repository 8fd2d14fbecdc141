from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fakes import CURRENCY

from bistro.application.dto.requests import OrderItemRequest
from bistro.application.use_cases.place_order import (
    IdempotencyReplayMismatchError,
    NoValidItemsError,
    OrderPersistenceError,
    PlaceOrder,
)
from bistro.application.use_cases.reconcile_tables import ReconcileTables
from bistro.application.use_cases.tables import TableNotFoundError
from bistro.domain.common.ids import TableId
from bistro.domain.order.entities import OrderStatus
from bistro.domain.table.entities import TableStatus


@pytest.fixture
def use_case(catalog_repo, table_repo, order_repo, publisher) -> PlaceOrder:
    return PlaceOrder(
        catalog_repository=catalog_repo,
        table_repository=table_repo,
        order_repository=order_repo,
        publisher=publisher,
        currency=CURRENCY,
    )


def _items(*pairs: tuple[str, object]) -> list[OrderItemRequest]:
    return [OrderItemRequest(product_id=product_id, quantity=qty) for product_id, qty in pairs]


def test_prices_come_from_catalog_and_unknown_items_are_dropped(
    use_case, order_repo, trace_ctx
) -> None:
    response = use_case.execute(
        TableId(1),
        _items(("prd_burger", 2), ("prd_ghost", 5), ("prd_soda", "abc")),
        trace_ctx,
    )
    assert response.total.amountCents == 2 * 2500 + 600
    assert [item.productId for item in response.items] == ["prd_burger", "prd_soda"]
    assert response.items[1].quantity == 1
    stored = order_repo.get(response.orderId)
    assert stored is not None and len(stored.items) == 2


def test_repeated_products_stay_separate_lines(use_case, catalog_repo, trace_ctx) -> None:
    response = use_case.execute(None, _items(("prd_soda", 1), ("prd_soda", 2)), trace_ctx)
    assert len(response.items) == 2
    assert catalog_repo.products["prd_soda"].stock_quantity == 0


def test_table_becomes_occupied_with_derived_total(use_case, table_repo, trace_ctx) -> None:
    use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    use_case.execute(TableId(1), _items(("prd_soda", 2)), trace_ctx)
    table = table_repo.get(TableId(1))
    assert table.status == TableStatus.OCCUPIED
    assert table.total.amount_cents == 2500 + 1200


def test_counter_sale_leaves_tables_untouched(use_case, table_repo, publisher, trace_ctx) -> None:
    response = use_case.execute(None, _items(("prd_burger", 1)), trace_ctx)
    assert response.tableId is None
    assert all(table.status == TableStatus.AVAILABLE for table in table_repo.list())
    assert publisher.event_types("events:orders") == ["order.placed"]


def test_no_valid_items_raises(use_case, order_repo, trace_ctx) -> None:
    with pytest.raises(NoValidItemsError):
        use_case.execute(TableId(1), _items(("prd_ghost", 1)), trace_ctx)
    assert order_repo.orders == {}


def test_unknown_table_raises(use_case, trace_ctx) -> None:
    with pytest.raises(TableNotFoundError):
        use_case.execute(TableId(99), _items(("prd_burger", 1)), trace_ctx)


def test_product_lookup_failure_is_persistence_error(use_case, catalog_repo, trace_ctx) -> None:
    catalog_repo.fail_on.add("get_products")
    with pytest.raises(OrderPersistenceError):
        use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)


def test_item_insert_failure_compensates_order_row(
    use_case, order_repo, catalog_repo, table_repo, trace_ctx
) -> None:
    order_repo.fail_on.add("insert_items")
    with pytest.raises(OrderPersistenceError):
        use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    assert order_repo.orders == {}
    assert catalog_repo.products["prd_burger"].stock_quantity == 10
    assert table_repo.get(TableId(1)).status == TableStatus.AVAILABLE


def test_stock_failure_compensates_items_and_order(
    use_case, order_repo, catalog_repo, trace_ctx
) -> None:
    catalog_repo.fail_on.add("apply_stock_deltas")
    with pytest.raises(OrderPersistenceError):
        use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    assert order_repo.orders == {}


def test_table_update_failure_does_not_fail_the_order(
    use_case, table_repo, order_repo, trace_ctx
) -> None:
    table_repo.fail_on.add("save")
    response = use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    assert order_repo.get(response.orderId) is not None
    assert table_repo.get(TableId(1)).status == TableStatus.AVAILABLE


def test_publish_failure_does_not_fail_the_order(use_case, publisher, trace_ctx) -> None:
    publisher.fail = True
    response = use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    assert response.orderId.startswith("ord_")


def test_idempotent_replay_returns_original_order(use_case, order_repo, trace_ctx) -> None:
    first = use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx, "key-1")
    second = use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx, "key-1")
    assert first.orderId == second.orderId
    assert len(order_repo.orders) == 1


def test_idempotent_replay_with_other_payload_conflicts(use_case, trace_ctx) -> None:
    use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx, "key-1")
    with pytest.raises(IdempotencyReplayMismatchError):
        use_case.execute(TableId(1), _items(("prd_burger", 2)), trace_ctx, "key-1")


def test_without_key_retries_create_duplicates(use_case, order_repo, trace_ctx) -> None:
    use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    use_case.execute(TableId(1), _items(("prd_burger", 1)), trace_ctx)
    assert len(order_repo.orders) == 2


def test_reconciliation_during_checkout_keeps_the_new_order(
    use_case, table_repo, order_repo, publisher, monkeypatch, trace_ctx
) -> None:
    reconcile = ReconcileTables(table_repo, order_repo, publisher)
    insert_items = order_repo.insert_items

    def reconcile_then_insert(order_id, items) -> None:
        reconcile.execute(trace_ctx)
        insert_items(order_id, items)

    monkeypatch.setattr(order_repo, "insert_items", reconcile_then_insert)

    response = use_case.execute(TableId(1), _items(("prd_burger", 2)), trace_ctx)

    assert order_repo.get(response.orderId).status == OrderStatus.QUEUED
    table = table_repo.get(TableId(1))
    assert table.status == TableStatus.OCCUPIED
    assert table.total.amount_cents == 5000
