from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Callable

from bistro.application.dto.responses import ReconciliationResponse
from bistro.application.mappers.event_envelope import TOPIC_ORDERS
from bistro.application.realtime.refresh_trigger import RefreshTrigger, run_interval
from bistro.application.use_cases.context import ORIGIN_RECONCILIATION, TraceContext
from bistro.application.use_cases.reconcile_tables import ReconcileTables
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher
from bistro.infrastructure.observability.otel import current_trace_id, get_tracer

logger = logging.getLogger(__name__)

# Table events are emitted by reconciliation itself.
RECONCILE_TOPICS = frozenset({TOPIC_ORDERS})


def _default_use_case() -> ReconcileTables:
    return ReconcileTables(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


class ReconciliationWorker:
    """Re-derives table status and totals on every refresh signal."""

    def __init__(
        self,
        interval_seconds: float,
        use_case_factory: Callable[[], ReconcileTables] = _default_use_case,
    ) -> None:
        self._interval_seconds = interval_seconds
        self._use_case_factory = use_case_factory
        self._trigger = RefreshTrigger(name="reconciliation")
        self._task: asyncio.Task | None = None
        self._timer: asyncio.Task | None = None

    def notify(self, topic: str) -> None:
        if topic in RECONCILE_TOPICS:
            self._trigger.poke(f"change:{topic}")

    def start(self) -> None:
        self._timer = asyncio.create_task(run_interval(self._trigger, self._interval_seconds))
        self._task = asyncio.create_task(self._run())
        self._trigger.poke("startup")
        logger.info(
            "reconciliation_worker_started",
            extra={"interval_seconds": self._interval_seconds},
        )

    async def stop(self) -> None:
        self._trigger.close()
        for task in (self._timer, self._task):
            if task is None:
                continue
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        async for source in self._trigger:
            try:
                report = await asyncio.to_thread(self.run_once)
            except Exception:
                logger.exception("reconciliation_failed", extra={"source": source})
                continue
            if report.corrections or report.ghostOrdersFinalized:
                logger.info(
                    "reconciliation_completed",
                    extra={
                        "source": source,
                        "corrections": len(report.corrections),
                        "ghost_orders": len(report.ghostOrdersFinalized),
                    },
                )

    def run_once(self) -> ReconciliationResponse:
        with get_tracer().start_as_current_span("reconcile_tables"):
            return self._use_case_factory().execute(
                TraceContext.background(current_trace_id(), origin=ORIGIN_RECONCILIATION)
            )
