from __future__ import annotations

import logging
import os
from functools import lru_cache

import redis

logger = logging.getLogger(__name__)


def redis_url() -> str | None:
    value = os.getenv("REDIS_URL", "").strip()
    return value or None


def _required_redis_url() -> str:
    url = redis_url()
    if url is None:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        health_check_interval=30,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    """Shared client for cache and change-feed publishing."""
    return _build_client(_required_redis_url(), timeout_seconds)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except Exception as exc:
        logger.warning("redis_ping_failed", extra={"error": str(exc)})
        return False
