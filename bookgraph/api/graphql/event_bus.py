"""
In-process event bus for GraphQL subscriptions

One EventBus instance is built per application and handed to both the
resolvers (publishers) and the subscription resolvers (listeners). Delivery
is best effort to whoever is listening at publish time: no persistence, no
replay for late listeners.
"""
import asyncio
import itertools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from bookgraph.common_logging.setup import get_logger

logger = get_logger(__name__)

_CLOSED = object()


class Topic(str, Enum):
    """Event topics"""
    BOOK_ADDED = "BOOK_ADDED"


@dataclass(frozen=True)
class Event:
    """An entity of kind ``topic`` was created; ``payload`` is its snapshot"""
    topic: Topic
    payload: Any
    timestamp: float = field(default_factory=time.time)


class EventStream:
    """
    One listener registration.

    Registered as soon as it is created, so nothing published afterwards is
    missed. Iterate it to receive events in publish order; ``aclose()`` (or
    leaving ``async with``) removes the registration. Not restartable.
    """

    def __init__(self, bus: "EventBus", topic: Topic, subscription_id: str):
        self.bus = bus
        self.topic = topic
        self.subscription_id = subscription_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, event: Event) -> None:
        self.queue.put_nowait(event)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Event:
        if self.closed:
            raise StopAsyncIteration
        event = await self.queue.get()
        if event is _CLOSED:
            raise StopAsyncIteration
        return event

    async def aclose(self) -> None:
        self.close()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.bus._unregister(self)
            # wake a consumer blocked on get()
            self.queue.put_nowait(_CLOSED)

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class EventBus:
    """Topic -> listeners registry with synchronous, non-blocking fan-out"""

    def __init__(self):
        self._listeners: Dict[Topic, Dict[str, EventStream]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, topic: Topic) -> EventStream:
        """Register a listener on ``topic`` and return its stream"""
        subscription_id = f"{topic.value.lower()}_{next(self._ids)}"
        stream = EventStream(self, topic, subscription_id)
        self._listeners.setdefault(topic, {})[subscription_id] = stream
        logger.info(f"Created subscription {subscription_id}")
        return stream

    def _unregister(self, stream: EventStream) -> None:
        listeners = self._listeners.get(stream.topic)
        if listeners and listeners.pop(stream.subscription_id, None) is not None:
            if not listeners:
                del self._listeners[stream.topic]
            logger.info(f"Removed subscription {stream.subscription_id}")

    def publish(self, topic: Topic, event: Event) -> int:
        """
        Hand ``event`` to every listener currently registered on ``topic``.

        Returns immediately; listeners consume from their own queues. The
        return value is the number of listeners reached.
        """
        listeners = list(self._listeners.get(topic, {}).values())
        logger.debug(f"Publishing {topic.value} to {len(listeners)} subscriptions")
        for stream in listeners:
            stream._deliver(event)
        return len(listeners)

    def listener_count(self, topic: Optional[Topic] = None) -> int:
        """Active registrations, for one topic or all of them"""
        if topic is not None:
            return len(self._listeners.get(topic, {}))
        return sum(len(listeners) for listeners in self._listeners.values())
