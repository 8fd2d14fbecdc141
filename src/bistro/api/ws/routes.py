from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from bistro.api.ws.manager import ConnectionManager
from bistro.application.realtime.refresh_trigger import RefreshTrigger, run_interval

router = APIRouter()
logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 2.0
MAX_INTERVAL_SECONDS = 10.0
DEFAULT_INTERVAL_SECONDS = 5.0


def parse_topics(raw: str | None) -> frozenset[str] | None:
    if not raw:
        return None
    topics = frozenset(topic.strip() for topic in raw.split(",") if topic.strip())
    return topics or None


def parse_interval(raw: str | None) -> float:
    try:
        value = float(raw) if raw else DEFAULT_INTERVAL_SECONDS
    except ValueError:
        value = DEFAULT_INTERVAL_SECONDS
    return min(max(value, MIN_INTERVAL_SECONDS), MAX_INTERVAL_SECONDS)


async def _read_client(websocket: WebSocket, trigger: RefreshTrigger) -> None:
    """Client messages: ``focus`` (or ``{"type": "focus"}``) forces a refresh."""
    while True:
        raw = await websocket.receive_text()
        kind = raw.strip()
        if kind.startswith("{"):
            try:
                kind = str(json.loads(kind).get("type", ""))
            except (ValueError, AttributeError):
                kind = ""
        if kind in {"focus", "refresh"}:
            trigger.poke(kind)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    view = websocket.query_params.get("view", "unknown")
    topics = parse_topics(websocket.query_params.get("topics"))
    interval = parse_interval(websocket.query_params.get("interval"))

    manager: ConnectionManager = websocket.app.state.ws_manager
    trigger = await manager.register(websocket=websocket, topics=topics, view=view)
    trigger.poke("connected")

    timer = asyncio.create_task(run_interval(trigger, interval))
    reader = asyncio.create_task(_read_client(websocket, trigger))
    reader.add_done_callback(lambda _: trigger.close())
    try:
        async for source in trigger:
            await websocket.send_json({"type": "refresh", "source": source})
    except WebSocketDisconnect:
        logger.debug("ws_send_after_disconnect", extra={"view": view})
    except Exception:
        logger.exception("ws_connection_error", extra={"view": view})
    finally:
        manager.unregister(websocket)
        for task in (timer, reader):
            task.cancel()
            with suppress(asyncio.CancelledError, WebSocketDisconnect):
                await task
