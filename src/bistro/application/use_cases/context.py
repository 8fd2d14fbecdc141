from __future__ import annotations

from dataclasses import dataclass

ORIGIN_API = "api"
ORIGIN_RECONCILIATION = "reconciliation"


@dataclass(frozen=True)
class TraceContext:
    """Correlation data carried from the caller into logs and change events.

    ``origin`` tells subscribers whether a change came from an HTTP request
    or from the background reconciliation worker.
    """

    trace_id: str | None
    request_id: str | None
    origin: str = ORIGIN_API

    @classmethod
    def background(cls, trace_id: str | None, origin: str) -> TraceContext:
        return cls(trace_id=trace_id, request_id=None, origin=origin)
