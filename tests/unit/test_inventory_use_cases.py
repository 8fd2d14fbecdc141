from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fakes import NOW, FakeInventoryLogRepository

from bistro.application.use_cases.adjust_stock import (
    AdjustStock,
    GetInventoryOverview,
    InvalidLogLimitError,
    ListInventoryLogs,
)
from bistro.application.use_cases.catalog import ProductNotFoundError
from bistro.application.use_cases.get_menu import MENU_CACHE_KEY
from bistro.domain.common.ids import ProductId
from bistro.domain.inventory.entities import InvalidStockAdjustmentError


@pytest.fixture
def log_repo() -> FakeInventoryLogRepository:
    return FakeInventoryLogRepository()


@pytest.fixture
def adjust(catalog_repo, log_repo, cache, publisher) -> AdjustStock:
    return AdjustStock(
        catalog_repository=catalog_repo,
        log_repository=log_repo,
        cache=cache,
        publisher=publisher,
        clock=lambda: NOW,
    )


def test_adjustment_applies_delta_and_writes_log(
    adjust, catalog_repo, log_repo, cache, publisher, trace_ctx
) -> None:
    cache.values[MENU_CACHE_KEY] = "{}"
    response = adjust.execute(ProductId("prd_soda"), -5, "spoiled", trace_ctx)

    assert response.audited
    assert response.product.stockQuantity == -2
    assert catalog_repo.products["prd_soda"].stock_quantity == -2
    assert [(log.change_amount, log.reason) for log in log_repo.logs] == [(-5, "spoiled")]
    assert MENU_CACHE_KEY not in cache.values
    assert publisher.event_types("events:inventory_logs") == ["inventory_log.created"]


def test_log_failure_keeps_stock_change_unaudited(
    adjust, catalog_repo, log_repo, publisher, trace_ctx
) -> None:
    log_repo.fail_on.add("add")
    response = adjust.execute(ProductId("prd_burger"), 3, "delivery", trace_ctx)
    assert not response.audited
    assert catalog_repo.products["prd_burger"].stock_quantity == 13
    assert publisher.event_types("events:inventory_logs") == []


@pytest.mark.parametrize(("delta", "reason"), [(0, "count"), (2, "   ")])
def test_invalid_adjustments_are_rejected(adjust, catalog_repo, delta, reason, trace_ctx) -> None:
    with pytest.raises(InvalidStockAdjustmentError):
        adjust.execute(ProductId("prd_burger"), delta, reason, trace_ctx)
    assert catalog_repo.applied_deltas == []


def test_unknown_product(adjust, trace_ctx) -> None:
    with pytest.raises(ProductNotFoundError):
        adjust.execute(ProductId("prd_missing"), 1, "recount", trace_ctx)


def test_overview_counts_low_stock(catalog_repo) -> None:
    overview = GetInventoryOverview(catalog_repo).execute()
    assert overview.lowStockCount == 2
    assert overview.totalUnits == 13
    assert overview.products[0].productId == "prd_paused"


def test_logs_newest_first_with_limit_bounds(adjust, log_repo, trace_ctx) -> None:
    adjust.execute(ProductId("prd_soda"), 1, "first", trace_ctx)
    logs = ListInventoryLogs(log_repo).execute(limit=10)
    assert logs[0].reason == "first"
    assert logs[0].productName == "Soda"
    with pytest.raises(InvalidLogLimitError):
        ListInventoryLogs(log_repo).execute(limit=0)
    with pytest.raises(InvalidLogLimitError):
        ListInventoryLogs(log_repo).execute(limit=501)
