"""
Event bus for work-session domain events.

Synchronous in-process pub/sub. Handlers execute immediately in the same
thread as the publisher, so a status change and the daily-record update it
drives finish within one request. Handler errors are logged but never
propagate: the publisher's write has already committed.
"""

import logging
from typing import Callable

from core.events import WorkSessionEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus.

    Subscribe by event class; a handler registered for a base class also
    receives its subclasses. Handlers run in subscription order, most
    specific class first.
    """

    def __init__(self):
        self._subscribers: dict[type, list[Callable]] = {}

    def subscribe(self, event_type: type[WorkSessionEvent], callback: Callable) -> None:
        """
        Subscribe to events of a class and its subclasses.

        Args:
            event_type: Event class, e.g. TicketStatusChanged
            callback: Called with the event instance
        """
        self._subscribers.setdefault(event_type, []).append(callback)

    def handlers_for(self, event: WorkSessionEvent) -> list[Callable]:
        handlers = []
        for cls in type(event).__mro__:
            handlers.extend(self._subscribers.get(cls, ()))
        return handlers

    def publish(self, event: WorkSessionEvent) -> None:
        """
        Deliver an event to every matching handler.

        Args:
            event: WorkSessionEvent instance to publish
        """
        for callback in self.handlers_for(event):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    type(event).__name__,
                    event.event_id,
                )
