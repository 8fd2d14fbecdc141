from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from bistro.api.error_handling import register_exception_handlers
from bistro.api.middleware.request_id import RequestIDMiddleware
from bistro.api.routes.billing import router as billing_router
from bistro.api.routes.catalog import router as catalog_router
from bistro.api.routes.health import router as health_router
from bistro.api.routes.inventory import router as inventory_router
from bistro.api.routes.kitchen import router as kitchen_router
from bistro.api.routes.ledger import router as ledger_router
from bistro.api.routes.metrics import router as metrics_router
from bistro.api.routes.orders import router as orders_router
from bistro.api.routes.public_menu import router as public_menu_router
from bistro.api.routes.reports import router as reports_router
from bistro.api.routes.settings import router as settings_router
from bistro.api.routes.tables import router as tables_router
from bistro.api.ws.manager import ConnectionManager
from bistro.api.ws.routes import router as ws_router
from bistro.infrastructure.config import reconcile_interval_seconds
from bistro.infrastructure.messaging.redis_event_listener import start_change_feed_listener
from bistro.infrastructure.observability.logging_config import configure_logging
from bistro.infrastructure.observability.otel import configure_otel
from bistro.infrastructure.realtime.reconciliation_worker import ReconciliationWorker

logger = logging.getLogger("bistro.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

ROUTERS = (
    health_router,
    metrics_router,
    catalog_router,
    public_menu_router,
    tables_router,
    orders_router,
    kitchen_router,
    billing_router,
    inventory_router,
    reports_router,
    ledger_router,
    settings_router,
    ws_router,
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # Dev/test: unblock everything (no credentials allowed)
    if env in {"dev", "test"}:
        return ["*"]

    # Staging/prod: restrict to explicit allowlist
    default_value = "http://localhost:8000"
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", default_value)
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_label(request: Request) -> str:
    # Route template, e.g. /v1/orders/{order_id}.
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or request.url.path


# Probes and scrapes are logged at debug level to keep the access log readable.
_QUIET_PATHS = frozenset({"/health/live", "/health/ready", "/metrics"})


def _observe(request: Request, status_code: int, started: float) -> dict[str, object]:
    path = _route_label(request)
    duration_seconds = time.perf_counter() - started
    REQUEST_COUNT.labels(
        method=request.method, path=path, status_code=str(status_code)
    ).inc()
    REQUEST_LATENCY.labels(method=request.method, path=path).observe(duration_seconds)
    return {
        "method": request.method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_seconds * 1000, 2),
    }


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_error", extra=_observe(request, 500, started))
            raise

        fields = _observe(request, response.status_code, started)
        level = logging.DEBUG if fields["path"] in _QUIET_PATHS else logging.INFO
        logger.log(level, "request_complete", extra=fields)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ws_manager = ConnectionManager()
    app.state.reconciliation_worker = None
    interval = reconcile_interval_seconds()
    if interval > 0:
        worker = ReconciliationWorker(interval_seconds=interval)
        worker.start()
        app.state.reconciliation_worker = worker

    listener_task = asyncio.create_task(start_change_feed_listener(app.state))
    app.state.change_feed_task = listener_task
    try:
        yield
    finally:
        listener_task.cancel()
        with suppress(asyncio.CancelledError):
            await listener_task
        if app.state.reconciliation_worker is not None:
            await app.state.reconciliation_worker.stop()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Bistro POS", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
