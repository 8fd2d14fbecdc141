from __future__ import annotations

from bistro.application.dto.responses import CategoryResponse, MenuResponse, ProductResponse
from bistro.application.mappers.order_mapper import to_money_response
from bistro.domain.menu.entities import Category, Product


def to_category_response(category: Category) -> CategoryResponse:
    return CategoryResponse(
        categoryId=str(category.category_id),
        name=category.name,
        icon=category.icon,
    )


def to_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        productId=str(product.product_id),
        name=product.name,
        priceMoney=to_money_response(product.price),
        stockQuantity=product.stock_quantity,
        status=product.status.value,
        categoryId=str(product.category_id) if product.category_id else None,
        categoryName=product.category_name,
    )


def to_menu_response(categories: list[Category], products: list[Product]) -> MenuResponse:
    return MenuResponse(
        categories=[to_category_response(category) for category in categories],
        products=[to_product_response(product) for product in products],
    )
