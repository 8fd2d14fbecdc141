from __future__ import annotations

from fastapi import APIRouter, Response, status

from bistro.infrastructure.cache.redis_client import ping_redis, redis_url
from bistro.infrastructure.db.session import ping_database

router = APIRouter()

CHECK_OK = "ok"
CHECK_DOWN = "down"
CHECK_DISABLED = "disabled"


def _database_check() -> str:
    return CHECK_OK if ping_database(timeout_seconds=1.0) else CHECK_DOWN


def _redis_check() -> str:
    # Without Redis the POS keeps working; only the change feed and menu cache are off.
    if redis_url() is None:
        return CHECK_DISABLED
    return CHECK_OK if ping_redis(timeout_seconds=1.0) else CHECK_DOWN


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks = {"database": _database_check(), "redis": _redis_check()}
    if CHECK_DOWN in checks.values():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "unavailable", "checks": checks}
    return {"status": "ok", "checks": checks}
