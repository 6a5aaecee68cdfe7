import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Dict, List

logger = logging.getLogger(__name__)

TOPIC_TAB_SNAPSHOT = "tabs.snapshot"
TOPIC_AUDIT_REVEAL = "audit.reveal"


@dataclass(frozen=True)
class TelemetryEvent:
    topic: str
    payload: Any
    created_at: datetime


Subscriber = Callable[[TelemetryEvent], None]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {}

    def subscribe(self, topic: str, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.setdefault(topic, []).append(subscriber)

        def _unsubscribe() -> None:
            bucket = self._subscribers.get(topic) or []
            kept = [s for s in bucket if s is not subscriber]
            if kept:
                self._subscribers[topic] = kept
            else:
                self._subscribers.pop(topic, None)

        return _unsubscribe

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic) or [])

    def publish(self, topic: str, payload: Any = None) -> TelemetryEvent:
        event = TelemetryEvent(
            topic=topic,
            payload=payload,
            created_at=datetime.now(timezone.utc),
        )
        for subscriber in list(self._subscribers.get(topic) or []):
            try:
                subscriber(event)
            except Exception:
                logger.exception("event subscriber failed topic=%s", topic)
        return event

    async def listen(self, topic: str) -> AsyncIterator[Any]:
        queue: "asyncio.Queue[Any]" = asyncio.Queue()
        unsubscribe = self.subscribe(topic, lambda event: queue.put_nowait(event.payload))
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()
