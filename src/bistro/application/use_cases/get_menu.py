from __future__ import annotations

import logging

from pydantic import ValidationError

from bistro.application.dto.responses import MenuResponse
from bistro.application.mappers.menu_mapper import to_menu_response
from bistro.application.ports.cache import CacheStore
from bistro.application.ports.repositories import CatalogRepository

logger = logging.getLogger(__name__)

MENU_CACHE_KEY = "menu:public"


def invalidate_menu_cache(cache: CacheStore) -> None:
    try:
        cache.delete(MENU_CACHE_KEY)
    except Exception:
        logger.warning("menu_cache_invalidate_failed", exc_info=True)


class GetMenu:
    """Public menu: active products and all categories.

    The cache is an optimization only; any cache failure falls back to the
    catalog store.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        cache: CacheStore,
        ttl_seconds: int = 30,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("menu_cache_read_failed", exc_info=True)
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            logger.warning("menu_cache_write_failed", exc_info=True)

    def execute(self) -> MenuResponse:
        payload = self._cache_get(MENU_CACHE_KEY)
        if payload:
            try:
                return MenuResponse.model_validate_json(payload)
            except ValidationError:
                logger.warning("menu_cache_payload_invalid")

        response = to_menu_response(
            self._repository.list_categories(),
            self._repository.list_products(active_only=True),
        )
        self._cache_set(MENU_CACHE_KEY, response.model_dump_json())
        return response
