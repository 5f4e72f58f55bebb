"""Best-effort topic broadcast for connected real-time clients."""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Set
from uuid import uuid4

from settings import get_settings

logger = logging.getLogger(__name__)

SENSOR_TOPIC = "sensor-updates"
SENSOR_EVENT = "sensor-data"


class Publisher(Protocol):
    def publish(self, topic: str, event: str, payload: Dict[str, Any]) -> int:
        ...


class Subscriber:
    """One connected client: a bounded outbox drained by its own loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, max_pending: int) -> None:
        self.id = uuid4().hex
        self.topics: Set[str] = set()
        self.queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=max_pending)
        self._loop = loop

    def offer(self, message: Dict[str, Any]) -> None:
        """Schedule delivery of ``message``; safe to call from any thread."""
        try:
            self._loop.call_soon_threadsafe(self._put, message)
        except RuntimeError:
            logger.warning("Subscriber %s loop is closed; message dropped", self.id)

    def _put(self, message: Dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Dropping message for slow subscriber %s",
                self.id,
                extra={"topic": message.get("topic"), "event": message.get("event")},
            )


class TopicBroadcaster:
    """Fan-out of events to the subscribers of a topic, at most once."""

    def __init__(self, max_pending: int = 100) -> None:
        self.max_pending = max_pending
        self._topics: Dict[str, Set[Subscriber]] = {}
        self._subscribers: Dict[str, Subscriber] = {}
        self._lock = Lock()

    def register(self, loop: asyncio.AbstractEventLoop) -> Subscriber:
        subscriber = Subscriber(loop, self.max_pending)
        with self._lock:
            self._subscribers[subscriber.id] = subscriber
        logger.info("Real-time client connected %s", subscriber.id)
        return subscriber

    def unregister(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.pop(subscriber.id, None)
            for topic in subscriber.topics:
                members = self._topics.get(topic)
                if members is None:
                    continue
                members.discard(subscriber)
                if not members:
                    del self._topics[topic]
            subscriber.topics.clear()
        logger.info("Real-time client disconnected %s", subscriber.id)

    def subscribe(self, subscriber: Subscriber, topic: str) -> None:
        with self._lock:
            self._topics.setdefault(topic, set()).add(subscriber)
            subscriber.topics.add(topic)
        logger.info("Client %s subscribed", subscriber.id, extra={"topic": topic})

    def unsubscribe(self, subscriber: Subscriber, topic: str) -> None:
        with self._lock:
            members = self._topics.get(topic)
            if members is not None:
                members.discard(subscriber)
                if not members:
                    del self._topics[topic]
            subscriber.topics.discard(topic)

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        with self._lock:
            if topic is None:
                return len(self._subscribers)
            return len(self._topics.get(topic, ()))

    def publish(self, topic: str, event: str, payload: Dict[str, Any]) -> int:
        """Offer ``payload`` to every subscriber of ``topic``.

        Returns the number of subscribers the message was offered to. A
        subscriber whose outbox is full loses the message.
        """
        message = {"type": "event", "topic": topic, "event": event, "data": payload}
        with self._lock:
            members = list(self._topics.get(topic, ()))
        for subscriber in members:
            subscriber.offer(message)
        logger.debug(
            "Published event",
            extra={"topic": topic, "event": event, "subscribers": len(members)},
        )
        return len(members)


@lru_cache
def build_default_broadcaster() -> TopicBroadcaster:
    return TopicBroadcaster(max_pending=get_settings().realtime_queue_size)
