from __future__ import annotations

import hashlib

from fastapi import APIRouter, Header, Response, status

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import AvailabilityRequest, CategoryRequest, ProductRequest
from bistro.application.dto.responses import CategoryResponse, MenuResponse, ProductResponse
from bistro.application.use_cases.catalog import (
    CreateCategory,
    CreateProduct,
    DeleteCategory,
    DeleteProduct,
    ListCategories,
    ListProducts,
    SetProductAvailability,
    UpdateCategory,
    UpdateProduct,
)
from bistro.application.use_cases.get_menu import GetMenu
from bistro.domain.common.ids import CategoryId, ProductId
from bistro.infrastructure.cache.cache_store import RedisCacheStore
from bistro.infrastructure.config import menu_cache_ttl_seconds, pos_currency
from bistro.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def get_menu_use_case() -> GetMenu:
    return GetMenu(
        repository=SqlAlchemyCatalogRepository(),
        cache=RedisCacheStore(),
        ttl_seconds=menu_cache_ttl_seconds(),
    )


def _writer(use_case_cls):
    return use_case_cls(
        repository=SqlAlchemyCatalogRepository(),
        cache=RedisCacheStore(),
        publisher=RedisEventPublisher(),
        currency=pos_currency(),
    )


@router.get("/v1/menu", response_model=MenuResponse)
def get_menu(
    response: Response,
    if_none_match: str | None = Header(default=None, alias="If-None-Match"),
) -> MenuResponse | Response:
    payload = get_menu_use_case().execute()

    digest = hashlib.sha256(payload.model_dump_json().encode("utf-8")).hexdigest()[:16]
    etag = f'"menu-{digest}"'
    if if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})

    response.headers["ETag"] = etag
    return payload


@router.get("/v1/categories", response_model=list[CategoryResponse])
def list_categories() -> list[CategoryResponse]:
    return ListCategories(repository=SqlAlchemyCatalogRepository()).execute()


@router.post(
    "/v1/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_category(request_dto: CategoryRequest) -> CategoryResponse:
    return _writer(CreateCategory).execute(request_dto, trace_ctx=current_trace_context())


@router.put("/v1/categories/{category_id}", response_model=CategoryResponse)
def update_category(category_id: str, request_dto: CategoryRequest) -> CategoryResponse:
    return _writer(UpdateCategory).execute(
        CategoryId(category_id),
        request_dto,
        trace_ctx=current_trace_context(),
    )


@router.delete("/v1/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: str) -> Response:
    _writer(DeleteCategory).execute(CategoryId(category_id), trace_ctx=current_trace_context())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/v1/products", response_model=list[ProductResponse])
def list_products() -> list[ProductResponse]:
    return ListProducts(repository=SqlAlchemyCatalogRepository()).execute()


@router.post(
    "/v1/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(request_dto: ProductRequest) -> ProductResponse:
    return _writer(CreateProduct).execute(request_dto, trace_ctx=current_trace_context())


@router.put("/v1/products/{product_id}", response_model=ProductResponse)
def update_product(product_id: str, request_dto: ProductRequest) -> ProductResponse:
    return _writer(UpdateProduct).execute(
        ProductId(product_id),
        request_dto,
        trace_ctx=current_trace_context(),
    )


@router.delete("/v1/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: str) -> Response:
    _writer(DeleteProduct).execute(ProductId(product_id), trace_ctx=current_trace_context())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/v1/products/{product_id}/availability", response_model=ProductResponse)
def set_product_availability(
    product_id: str,
    request_dto: AvailabilityRequest,
) -> ProductResponse:
    return _writer(SetProductAvailability).execute(
        ProductId(product_id),
        request_dto.active,
        trace_ctx=current_trace_context(),
    )
