from __future__ import annotations

from prometheus_client import Counter

from bistro.application.ports.cache import CacheStore
from bistro.infrastructure.cache.redis_client import get_redis_client

KEY_PREFIX = "bistro:"

CACHE_LOOKUPS_TOTAL = Counter(
    "cache_lookups_total",
    "Cache reads by outcome",
    ["outcome"],
)


class RedisCacheStore(CacheStore):
    def __init__(self, timeout_seconds: float = 1.0, prefix: str = KEY_PREFIX) -> None:
        self._timeout_seconds = timeout_seconds
        self._prefix = prefix

    def _client(self):
        return get_redis_client(timeout_seconds=self._timeout_seconds)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        value = self._client().get(self._key(key))
        CACHE_LOOKUPS_TOTAL.labels(outcome="miss" if value is None else "hit").inc()
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._client().set(name=self._key(key), value=value, ex=max(1, ttl_seconds))

    def delete(self, key: str) -> None:
        self._client().delete(self._key(key))
