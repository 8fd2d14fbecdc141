from __future__ import annotations

from fastapi.testclient import TestClient


def test_stock_adjustment_is_logged(client: TestClient, floor: dict[str, str]) -> None:
    response = client.post(
        f"/v1/products/{floor['soda']}/stock-adjustments",
        json={"delta": -3, "reason": "  broken bottles "},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["audited"] is True
    assert body["product"]["stockQuantity"] == 2

    logs = client.get("/v1/inventory/logs").json()
    assert len(logs) == 1
    assert logs[0]["productName"] == "Soda"
    assert logs[0]["changeAmount"] == -3
    assert logs[0]["reason"] == "broken bottles"

    overview = client.get("/v1/inventory").json()
    assert overview["lowStockCount"] == 1
    assert overview["totalUnits"] == 12

    zero = client.post(
        f"/v1/products/{floor['soda']}/stock-adjustments",
        json={"delta": 0, "reason": "count"},
    )
    assert zero.status_code == 400
    assert zero.json()["error"]["code"] == "INVALID_STOCK_ADJUSTMENT"

    bad_limit = client.get("/v1/inventory/logs", params={"limit": 0})
    assert bad_limit.status_code == 400
    assert bad_limit.json()["error"]["code"] == "INVALID_LIMIT"


def test_revenue_report_and_dashboard(client: TestClient, floor: dict[str, str]) -> None:
    kept = client.post(
        "/api/orders",
        json={"table_id": 1, "items": [{"product_id": floor["burger"], "quantity": 2}]},
    ).json()["orderId"]
    dropped = client.post(
        "/api/orders",
        json={"table_id": 2, "items": [{"product_id": floor["soda"]}]},
    ).json()["orderId"]
    client.post(f"/v1/orders/{dropped}/cancel")

    report = client.get("/v1/reports/revenue", params={"range": "daily"})
    assert report.status_code == 200
    body = report.json()
    assert body["range"] == "daily"
    assert body["orders"] == 1
    assert body["revenue"]["amountCents"] == 5000
    assert body["itemsSold"] == 2
    assert body["topProducts"][0]["name"] == "Burger"

    invalid = client.get("/v1/reports/revenue", params={"range": "yearly"})
    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == "INVALID_REPORT_RANGE"

    dashboard = client.get("/v1/dashboard").json()
    assert dashboard["ordersToday"] == 2
    assert dashboard["activeTables"] == 1
    assert dashboard["totalTables"] == 2
    assert dashboard["revenueToday"]["amountCents"] == 5000
    assert {order["orderId"] for order in dashboard["recentOrders"]} == {kept, dropped}


def test_ledger_lifecycle(client: TestClient) -> None:
    supplier = client.post(
        "/v1/ledger/transactions",
        json={
            "description": "Fish supplier",
            "amountCents": 45000,
            "type": "expense",
            "dueDate": "2026-10-30",
            "counterparty": "Peixaria Sul",
        },
    )
    assert supplier.status_code == 201
    supplier_id = supplier.json()["transactionId"]
    assert supplier.json()["status"] == "pending"

    catering = client.post(
        "/v1/ledger/transactions",
        json={"description": "Catering", "amountCents": 120000, "type": "income"},
    )
    assert catering.status_code == 201

    summary = client.get("/v1/ledger/summary").json()
    assert summary["pendingPayable"]["amountCents"] == 45000
    assert summary["pendingReceivable"]["amountCents"] == 120000

    paid = client.post(f"/v1/ledger/transactions/{supplier_id}/pay")
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert paid.json()["paidAt"] is not None

    expenses = client.get("/v1/ledger/transactions", params={"type": "expense"}).json()
    assert [transaction["transactionId"] for transaction in expenses] == [supplier_id]

    bad_filter = client.get("/v1/ledger/transactions", params={"status": "overdue"})
    assert bad_filter.status_code == 400
    assert bad_filter.json()["error"]["code"] == "INVALID_TRANSACTION_FILTER"

    assert client.delete(f"/v1/ledger/transactions/{supplier_id}").status_code == 204
    missing = client.post(f"/v1/ledger/transactions/{supplier_id}/pay")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "TRANSACTION_NOT_FOUND"

    summary = client.get("/v1/ledger/summary").json()
    assert summary["paidExpense"]["amountCents"] == 0


def test_settings_round_trip(client: TestClient) -> None:
    defaults = client.get("/v1/settings").json()
    assert defaults["currency"] == "BRL"
    assert defaults["darkMode"] is True

    updated = client.put(
        "/v1/settings",
        json={"restaurantName": " Bistro Centro ", "currency": "brl", "printerEnabled": True},
    )
    assert updated.status_code == 200
    assert updated.json()["restaurantName"] == "Bistro Centro"
    assert updated.json()["currency"] == "BRL"
    assert client.get("/v1/settings").json()["printerEnabled"] is True


def test_clear_history_and_reset(client: TestClient, floor: dict[str, str]) -> None:
    open_order = client.post(
        "/api/orders",
        json={"table_id": 1, "items": [{"product_id": floor["burger"]}]},
    ).json()["orderId"]
    client.post("/api/orders", json={"table_id": 2, "items": [{"product_id": floor["soda"]}]})
    client.post("/v1/tables/2/close")

    cleared = client.post("/v1/admin/clear-history")
    assert cleared.status_code == 200
    assert cleared.json()["ordersDeleted"] == 1
    assert client.get(f"/v1/orders/{open_order}").status_code == 200

    unconfirmed = client.post("/v1/admin/reset", json={"confirm": "yes"})
    assert unconfirmed.status_code == 400
    assert unconfirmed.json()["error"]["code"] == "RESET_NOT_CONFIRMED"

    reset = client.post("/v1/admin/reset", json={"confirm": "RESET"})
    assert reset.status_code == 200
    assert reset.json()["ordersDeleted"] == 1
    assert client.get(f"/v1/orders/{open_order}").status_code == 404

    tables = client.get("/v1/tables").json()
    assert tables["counts"]["available"] == 2
    # Catalog survives a reset.
    assert len(client.get("/v1/products").json()) == 2
