from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from bistro.application.metrics.pos_metrics import record_compensation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Callable[[], None]
    compensation: Callable[[], None] | None = None


class SagaFailedError(Exception):
    def __init__(self, step: str, uncompensated: list[str]) -> None:
        super().__init__(f"saga step {step!r} failed")
        self.step = step
        self.uncompensated = uncompensated


class Saga:
    """Runs independent store calls in order, undoing completed ones on failure.

    The store offers no transactions across calls, so every step declares its
    compensation before anything runs.
    """

    def __init__(self, steps: Sequence[SagaStep]) -> None:
        self._steps = list(steps)

    def run(self) -> None:
        completed: list[SagaStep] = []
        for step in self._steps:
            try:
                step.action()
            except Exception as exc:
                uncompensated = self._compensate(completed)
                raise SagaFailedError(step.name, uncompensated) from exc
            completed.append(step)

    def _compensate(self, completed: list[SagaStep]) -> list[str]:
        uncompensated: list[str] = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation()
            except Exception:
                logger.exception("saga_compensation_failed", extra={"step": step.name})
                uncompensated.append(step.name)
                continue
            record_compensation(step.name)
        return uncompensated
