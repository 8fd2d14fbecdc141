from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from bistro.application.dto.requests import CategoryRequest, ProductRequest
from bistro.application.dto.responses import CategoryResponse, ProductResponse
from bistro.application.mappers.event_envelope import TOPIC_PRODUCTS, serialize_event
from bistro.application.mappers.menu_mapper import to_category_response, to_product_response
from bistro.application.ports.cache import CacheStore
from bistro.application.ports.publisher import EventPublisher
from bistro.application.ports.repositories import CatalogRepository
from bistro.application.use_cases.context import TraceContext
from bistro.application.use_cases.get_menu import invalidate_menu_cache
from bistro.application.use_cases.notify import publish_change
from bistro.domain.common.ids import CategoryId, ProductId
from bistro.domain.common.money import Money
from bistro.domain.menu.entities import Category, Product, ProductStatus

logger = logging.getLogger(__name__)


class CategoryNotFoundError(Exception):
    pass


class ProductNotFoundError(Exception):
    pass


class InvalidCatalogEntryError(Exception):
    pass


class _CatalogWriter:
    def __init__(
        self,
        repository: CatalogRepository,
        cache: CacheStore,
        publisher: EventPublisher,
        currency: str,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._publisher = publisher
        self._currency = currency

    def _changed(self, event_type: str, payload: dict, trace_ctx: TraceContext) -> None:
        invalidate_menu_cache(self._cache)
        publish_change(
            self._publisher,
            TOPIC_PRODUCTS,
            serialize_event(
                event_type=event_type,
                occurred_at=datetime.now(timezone.utc),
                topic=TOPIC_PRODUCTS,
                payload=payload,
                trace=trace_ctx,
            ),
        )

    def _category(self, category_id: CategoryId) -> Category:
        category = self._repository.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(f"category not found: {category_id}")
        return category

    def _product(self, product_id: ProductId) -> Product:
        product = self._repository.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(f"product not found: {product_id}")
        return product

    def _build_product(self, product_id: ProductId, request: ProductRequest) -> Product:
        category_id = CategoryId(request.category_id) if request.category_id else None
        category_name = self._category(category_id).name if category_id else None
        try:
            return Product(
                product_id=product_id,
                name=request.name.strip(),
                price=Money(amount_cents=request.price_cents, currency=self._currency),
                stock_quantity=request.stock_quantity,
                status=ProductStatus.ACTIVE if request.active else ProductStatus.PAUSED,
                category_id=category_id,
                category_name=category_name,
            )
        except ValueError as exc:
            raise InvalidCatalogEntryError(str(exc)) from exc


class ListCategories:
    def __init__(self, repository: CatalogRepository) -> None:
        self._repository = repository

    def execute(self) -> list[CategoryResponse]:
        return [to_category_response(c) for c in self._repository.list_categories()]


class CreateCategory(_CatalogWriter):
    def execute(self, request: CategoryRequest, trace_ctx: TraceContext) -> CategoryResponse:
        try:
            category = Category(
                category_id=CategoryId(f"cat_{uuid4().hex[:12]}"),
                name=request.name.strip(),
                icon=request.icon,
            )
        except ValueError as exc:
            raise InvalidCatalogEntryError(str(exc)) from exc
        self._repository.add_category(category)
        logger.info("category_created", extra={"category_id": str(category.category_id)})
        self._changed("category.created", {"categoryId": category.category_id}, trace_ctx)
        return to_category_response(category)


class UpdateCategory(_CatalogWriter):
    def execute(
        self,
        category_id: CategoryId,
        request: CategoryRequest,
        trace_ctx: TraceContext,
    ) -> CategoryResponse:
        self._category(category_id)
        try:
            category = Category(
                category_id=category_id,
                name=request.name.strip(),
                icon=request.icon,
            )
        except ValueError as exc:
            raise InvalidCatalogEntryError(str(exc)) from exc
        self._repository.update_category(category)
        self._changed("category.updated", {"categoryId": category_id}, trace_ctx)
        return to_category_response(category)


class DeleteCategory(_CatalogWriter):
    def execute(self, category_id: CategoryId, trace_ctx: TraceContext) -> None:
        if not self._repository.delete_category(category_id):
            raise CategoryNotFoundError(f"category not found: {category_id}")
        logger.info("category_deleted", extra={"category_id": str(category_id)})
        self._changed("category.deleted", {"categoryId": category_id}, trace_ctx)


class ListProducts:
    def __init__(self, repository: CatalogRepository) -> None:
        self._repository = repository

    def execute(self) -> list[ProductResponse]:
        return [to_product_response(p) for p in self._repository.list_products()]


class CreateProduct(_CatalogWriter):
    def execute(self, request: ProductRequest, trace_ctx: TraceContext) -> ProductResponse:
        product = self._build_product(ProductId(f"prd_{uuid4().hex[:12]}"), request)
        self._repository.add_product(product)
        logger.info("product_created", extra={"product_id": str(product.product_id)})
        self._changed("product.created", {"productId": product.product_id}, trace_ctx)
        return to_product_response(product)


class UpdateProduct(_CatalogWriter):
    def execute(
        self,
        product_id: ProductId,
        request: ProductRequest,
        trace_ctx: TraceContext,
    ) -> ProductResponse:
        self._product(product_id)
        product = self._build_product(product_id, request)
        self._repository.update_product(product)
        self._changed("product.updated", {"productId": product_id}, trace_ctx)
        return to_product_response(product)


class DeleteProduct(_CatalogWriter):
    def execute(self, product_id: ProductId, trace_ctx: TraceContext) -> None:
        if not self._repository.delete_product(product_id):
            raise ProductNotFoundError(f"product not found: {product_id}")
        logger.info("product_deleted", extra={"product_id": str(product_id)})
        self._changed("product.deleted", {"productId": product_id}, trace_ctx)


class SetProductAvailability(_CatalogWriter):
    def execute(
        self,
        product_id: ProductId,
        active: bool,
        trace_ctx: TraceContext,
    ) -> ProductResponse:
        product = self._product(product_id).with_status(active)
        self._repository.update_product(product)
        logger.info(
            "product_availability_changed",
            extra={"product_id": str(product_id), "status": product.status.value},
        )
        self._changed(
            "product.updated",
            {"productId": product_id, "status": product.status.value},
            trace_ctx,
        )
        return to_product_response(product)
