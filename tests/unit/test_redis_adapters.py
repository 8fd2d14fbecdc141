from __future__ import annotations

import sys
from pathlib import Path

from prometheus_client import REGISTRY

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import bistro.infrastructure.cache.cache_store as cache_store_module
import bistro.infrastructure.messaging.redis_publisher as publisher_module
from bistro.infrastructure.cache.cache_store import RedisCacheStore
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher


def _published(topic: str) -> float:
    return REGISTRY.get_sample_value("change_feed_published_total", {"topic": topic}) or 0.0


class StubRedis:
    def __init__(self, receivers: int = 1) -> None:
        self.data: dict[str, bytes] = {}
        self.expiries: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []
        self.receivers = receivers

    def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    def set(self, name: str, value: str, ex: int) -> None:
        self.data[name] = value.encode("utf-8")
        self.expiries[name] = ex

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return self.receivers


def test_cache_store_namespaces_keys(monkeypatch) -> None:
    stub = StubRedis()
    monkeypatch.setattr(cache_store_module, "get_redis_client", lambda timeout_seconds=1.0: stub)
    store = RedisCacheStore()

    assert store.get("menu:public") is None
    store.set("menu:public", '{"products":[]}', ttl_seconds=0)

    assert stub.expiries == {"bistro:menu:public": 1}
    assert store.get("menu:public") == '{"products":[]}'

    store.delete("menu:public")
    assert stub.data == {}


def test_publisher_tolerates_missing_subscribers(monkeypatch) -> None:
    stub = StubRedis(receivers=0)
    monkeypatch.setattr(publisher_module, "get_redis_client", lambda timeout_seconds=1.0: stub)
    before = _published("orders")

    RedisEventPublisher().publish("events:orders", '{"event_type":"order.placed"}')

    assert stub.published == [("events:orders", '{"event_type":"order.placed"}')]
    assert _published("orders") == before + 1
