from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from bistro.application.use_cases.context import TraceContext
from bistro.domain.common.money import Money
from bistro.domain.order.entities import Order
from bistro.domain.table.entities import DiningTable

TOPIC_ORDERS = "orders"
TOPIC_TABLES = "tables"
TOPIC_PRODUCTS = "products"
TOPIC_INVENTORY_LOGS = "inventory_logs"
TOPIC_FINANCIAL_TRANSACTIONS = "financial_transactions"
TOPIC_SETTINGS = "settings"

TOPICS = frozenset(
    {
        TOPIC_ORDERS,
        TOPIC_TABLES,
        TOPIC_PRODUCTS,
        TOPIC_INVENTORY_LOGS,
        TOPIC_FINANCIAL_TRANSACTIONS,
        TOPIC_SETTINGS,
    }
)


def _money(value: Money) -> dict[str, Any]:
    return {"amountCents": value.amount_cents, "currency": value.currency}


def serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    topic: str,
    payload: dict[str, Any],
    trace: TraceContext,
) -> str:
    """JSON change notification.

    Subscribers only rely on the topic to decide what to refetch; the payload
    is informational and never the source of truth.
    """
    if topic not in TOPICS:
        raise ValueError(f"unknown change topic: {topic}")
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "topic": topic,
        "origin": trace.origin,
        "request_id": trace.request_id,
        "trace_id": trace.trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False, default=str)


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    order: Order,
    trace: TraceContext,
) -> str:
    return serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        topic=TOPIC_ORDERS,
        trace=trace,
        payload={
            "orderId": str(order.order_id),
            "tableId": order.table_id,
            "status": order.status.value,
            "totalMoney": _money(order.total),
            "itemCount": sum(item.quantity for item in order.items),
        },
    )


def serialize_table_event(
    *,
    event_type: str,
    occurred_at: datetime,
    table: DiningTable,
    trace: TraceContext,
) -> str:
    return serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        topic=TOPIC_TABLES,
        trace=trace,
        payload={
            "tableId": table.table_id,
            "status": table.status.value,
            "totalMoney": _money(table.total),
        },
    )
