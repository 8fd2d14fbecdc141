from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fakes import CURRENCY

from bistro.application.dto.requests import CategoryRequest, ProductRequest
from bistro.application.use_cases.catalog import (
    CategoryNotFoundError,
    CreateCategory,
    CreateProduct,
    DeleteCategory,
    DeleteProduct,
    InvalidCatalogEntryError,
    ListProducts,
    ProductNotFoundError,
    SetProductAvailability,
    UpdateProduct,
)
from bistro.application.use_cases.get_menu import MENU_CACHE_KEY, GetMenu
from bistro.domain.common.ids import CategoryId, ProductId


@pytest.fixture
def deps(catalog_repo, cache, publisher) -> dict:
    return {
        "repository": catalog_repo,
        "cache": cache,
        "publisher": publisher,
        "currency": CURRENCY,
    }


def test_menu_lists_active_products_and_caches_them(catalog_repo, cache) -> None:
    menu = GetMenu(repository=catalog_repo, cache=cache).execute()
    assert [product.productId for product in menu.products] == ["prd_burger", "prd_soda"]
    assert [category.name for category in menu.categories] == ["Pratos"]
    assert MENU_CACHE_KEY in cache.values


def test_menu_served_from_cache(catalog_repo, cache) -> None:
    use_case = GetMenu(repository=catalog_repo, cache=cache)
    use_case.execute()
    catalog_repo.products.clear()
    assert len(use_case.execute().products) == 2


def test_menu_falls_back_to_store_when_cache_is_down(catalog_repo, cache) -> None:
    cache.fail = True
    menu = GetMenu(repository=catalog_repo, cache=cache).execute()
    assert len(menu.products) == 2


def test_corrupt_cache_payload_is_ignored(catalog_repo, cache) -> None:
    cache.values[MENU_CACHE_KEY] = '{"products": "nope"}'
    menu = GetMenu(repository=catalog_repo, cache=cache).execute()
    assert len(menu.products) == 2


def test_create_product_invalidates_menu_cache(deps, cache, publisher, trace_ctx) -> None:
    cache.values[MENU_CACHE_KEY] = "{}"
    response = CreateProduct(**deps).execute(
        ProductRequest(name=" Salad ", price_cents=1900, stock_quantity=4, category_id="cat_main"),
        trace_ctx,
    )
    assert response.name == "Salad"
    assert response.categoryName == "Pratos"
    assert response.priceMoney.currency == CURRENCY
    assert MENU_CACHE_KEY not in cache.values
    assert publisher.event_types("events:products") == ["product.created"]


def test_product_with_unknown_category(deps, trace_ctx) -> None:
    with pytest.raises(CategoryNotFoundError):
        CreateProduct(**deps).execute(
            ProductRequest(name="Salad", price_cents=100, category_id="cat_missing"),
            trace_ctx,
        )


def test_blank_names_are_rejected(deps, trace_ctx) -> None:
    with pytest.raises(InvalidCatalogEntryError):
        CreateCategory(**deps).execute(CategoryRequest(name="   "), trace_ctx)
    with pytest.raises(InvalidCatalogEntryError):
        CreateProduct(**deps).execute(ProductRequest(name="  ", price_cents=100), trace_ctx)


def test_update_and_delete_missing_product(deps, trace_ctx) -> None:
    with pytest.raises(ProductNotFoundError):
        UpdateProduct(**deps).execute(
            ProductId("prd_missing"), ProductRequest(name="X", price_cents=1), trace_ctx
        )
    with pytest.raises(ProductNotFoundError):
        DeleteProduct(**deps).execute(ProductId("prd_missing"), trace_ctx)


def test_availability_toggle_hides_product_from_menu(
    deps, catalog_repo, cache, trace_ctx
) -> None:
    response = SetProductAvailability(**deps).execute(ProductId("prd_soda"), False, trace_ctx)
    assert response.status == "Paused"
    menu = GetMenu(repository=catalog_repo, cache=cache).execute()
    assert [product.productId for product in menu.products] == ["prd_burger"]


def test_deleting_category_detaches_products(deps, catalog_repo, trace_ctx) -> None:
    DeleteCategory(**deps).execute(CategoryId("cat_main"), trace_ctx)
    burger = next(p for p in ListProducts(catalog_repo).execute() if p.productId == "prd_burger")
    assert burger.categoryId is None
    with pytest.raises(CategoryNotFoundError):
        DeleteCategory(**deps).execute(CategoryId("cat_main"), trace_ctx)
