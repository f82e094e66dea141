"""
Event bus - in-process publish/subscribe for domain events
Room, booking and order workflows publish; event_handlers listens.
"""
from typing import Callable, Dict, List, Any, Union
from dataclasses import dataclass, field
from datetime import datetime
import logging
import threading
import uuid
from app.models.events import EventType

logger = logging.getLogger(__name__)

Handler = Callable[["Event"], None]


@dataclass
class Event:
    """A domain event as delivered to handlers"""
    event_type: EventType
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # publishing service
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class EventBus:
    """
    Synchronous dispatch of domain events to subscribed handlers

    A failing handler is logged and skipped; the workflow that published
    the event has already committed and is never rolled back by a listener.
    """

    def __init__(self):
        self._subscribers: Dict[EventType, List[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: Union[EventType, str], handler: Handler) -> None:
        event_type = EventType(event_type)
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"{handler.__name__} subscribed to {event_type.value}")

    def unsubscribe(self, event_type: Union[EventType, str], handler: Handler) -> None:
        event_type = EventType(event_type)
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: Event) -> int:
        """Deliver to every handler of the event's type; returns how many succeeded"""
        event_type = EventType(event.event_type)
        with self._lock:
            handlers = list(self._subscribers.get(event_type, []))

        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Handler {handler.__name__} failed on {event_type.value} "
                    f"from {event.source} ({event.event_id}): {e}",
                    exc_info=True
                )
        return delivered

    def clear_subscribers(self) -> None:
        with self._lock:
            self._subscribers.clear()


event_bus = EventBus()
