"""WebSocket endpoint that relays published sensor events to clients.

Protocol (JSON text frames):

1. Client -> ``{"type": "subscribe", "topic": "sensor-updates"}``
   (``{"type": "subscribe-sensors"}`` is accepted as a shorthand)
2. Server -> ``{"type": "subscribed", "topic": ...}``
3. Server -> ``{"type": "event", "topic": ..., "event": "sensor-data", "data": {...}}``
4. Client -> ``{"type": "unsubscribe", "topic": ...}``
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from realtime.broadcaster import (
    SENSOR_TOPIC,
    Subscriber,
    TopicBroadcaster,
    build_default_broadcaster,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_broadcaster() -> TopicBroadcaster:
    return build_default_broadcaster()


async def _forward(websocket: WebSocket, subscriber: Subscriber) -> None:
    while True:
        message = await subscriber.queue.get()
        await websocket.send_json(message)


async def _stop_sender(sender: asyncio.Task[None]) -> None:
    """Cancel the forwarder and collect its outcome, including a failed send."""
    sender.cancel()
    await asyncio.gather(sender, return_exceptions=True)


def _reply(subscriber: Subscriber, message: Dict[str, Any]) -> None:
    # Replies share the outbox so only _forward writes to the socket.
    try:
        subscriber.queue.put_nowait(message)
    except asyncio.QueueFull:
        logger.warning("Dropping control reply for slow subscriber %s", subscriber.id)


def _handle(broadcaster: TopicBroadcaster, subscriber: Subscriber, raw: str) -> None:
    try:
        message = json.loads(raw)
    except ValueError:
        _reply(subscriber, {"type": "error", "error": "Messages must be JSON objects."})
        return
    if not isinstance(message, dict):
        _reply(subscriber, {"type": "error", "error": "Messages must be JSON objects."})
        return

    msg_type = message.get("type")
    if msg_type == "subscribe-sensors":
        msg_type, topic = "subscribe", SENSOR_TOPIC
    else:
        topic = message.get("topic")

    if msg_type not in {"subscribe", "unsubscribe"}:
        _reply(subscriber, {"type": "error", "error": f"Unknown message type: {msg_type}"})
        return
    if not isinstance(topic, str) or not topic:
        _reply(subscriber, {"type": "error", "error": "A topic is required."})
        return

    if msg_type == "subscribe":
        broadcaster.subscribe(subscriber, topic)
        _reply(subscriber, {"type": "subscribed", "topic": topic})
    else:
        broadcaster.unsubscribe(subscriber, topic)
        _reply(subscriber, {"type": "unsubscribed", "topic": topic})


@router.websocket("/ws")
async def sensor_updates(
    websocket: WebSocket,
    broadcaster: TopicBroadcaster = Depends(get_broadcaster),
) -> None:
    await websocket.accept()
    subscriber = broadcaster.register(asyncio.get_running_loop())
    sender = asyncio.create_task(_forward(websocket, subscriber))
    try:
        while True:
            raw = await websocket.receive_text()
            _handle(broadcaster, subscriber, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await _stop_sender(sender)
        broadcaster.unregister(subscriber)
