from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fakes import CURRENCY, NOW, brl

from bistro.application.use_cases.reconcile_tables import ReconcileTables
from bistro.application.use_cases.tables import (
    CreateTable,
    GetTable,
    ListTableQrCodes,
    ListTables,
    TableAlreadyExistsError,
    TableNotFoundError,
)
from bistro.domain.common.ids import OrderId, TableId
from bistro.domain.order.entities import OrderStatus
from bistro.domain.table.entities import TableStatus


def test_reconcile_heals_drift_and_finalizes_ghosts(
    table_repo, order_repo, publisher, make_order, trace_ctx
) -> None:
    order_repo.add(make_order("ord_1", 1, [("a", 1200, 1)]))
    order_repo.add(make_order("ord_ghost", 2, []))
    order_repo.add(make_order("ord_counter_ghost", None, []))
    table_repo.save(table_repo.get(TableId(2)).occupy(brl(5000)))

    reconcile = ReconcileTables(table_repo, order_repo, publisher, clock=lambda: NOW)
    report = reconcile.execute(trace_ctx)

    assert report.tablesChecked == 2
    assert sorted(report.ghostOrdersFinalized) == ["ord_counter_ghost", "ord_ghost"]
    corrections = {correction.tableId: correction for correction in report.corrections}
    assert corrections[1].status == "occupied"
    assert corrections[1].total.amountCents == 1200
    assert corrections[2].previousStatus == "occupied"
    assert corrections[2].status == "dirty"
    assert order_repo.get(OrderId("ord_ghost")).status == OrderStatus.FINALIZED
    assert publisher.event_types("events:tables") == ["table.updated", "table.updated"]


def test_reconcile_is_quiet_when_consistent(table_repo, order_repo, publisher, trace_ctx) -> None:
    reconcile = ReconcileTables(table_repo, order_repo, publisher, clock=lambda: NOW)
    report = reconcile.execute(trace_ctx)
    assert report.corrections == []
    assert publisher.messages == []


def test_list_tables_returns_healed_snapshot(
    table_repo, order_repo, publisher, make_order, trace_ctx
) -> None:
    order_repo.add(make_order("ord_1", 2, [("a", 800, 2)]))
    order_repo.add(make_order("ord_c", None, [("b", 300, 1)]))

    payload = ListTables(table_repo, order_repo, publisher).execute(trace_ctx)

    assert [table.tableId for table in payload.tables] == [1, 2]
    assert payload.tables[1].status == "occupied"
    assert payload.tables[1].total.amountCents == 1600
    assert payload.counts == {"available": 1, "occupied": 1, "dirty": 0}
    assert [order.orderId for order in payload.counterOrders] == ["ord_c"]


def test_get_table(table_repo) -> None:
    assert GetTable(table_repo).execute(TableId(1)).name == "Mesa 1"
    with pytest.raises(TableNotFoundError):
        GetTable(table_repo).execute(TableId(9))


def test_create_table_defaults_name(table_repo, publisher, trace_ctx) -> None:
    use_case = CreateTable(table_repo, publisher, CURRENCY)
    response = use_case.execute(TableId(7), None, trace_ctx)
    assert response.name == "Mesa 7"
    assert table_repo.get(TableId(7)).status == TableStatus.AVAILABLE
    with pytest.raises(TableAlreadyExistsError):
        use_case.execute(TableId(7), "Varanda", trace_ctx)


def test_qr_codes_point_at_public_menu(table_repo) -> None:
    codes = ListTableQrCodes(table_repo, "https://pos.example.com/").execute()
    assert [code.menuUrl for code in codes] == [
        "https://pos.example.com/menu?mesa=1",
        "https://pos.example.com/menu?mesa=2",
    ]
