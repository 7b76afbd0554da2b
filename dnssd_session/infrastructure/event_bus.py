"""In-process event bus.

The session publishes every notification here; listener adapters, the CLI and
the logging handler subscribe by event class.
"""

import threading
from typing import Callable, Dict, List, Type

from ..domain.events import DomainEvent
from ..logging_config import get_logger

logger = get_logger(__name__)

Handler = Callable[[DomainEvent], None]
ErrorHandler = Callable[[Exception, DomainEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe keyed by event class.

    A handler subscribed to a class also receives its subclasses, so
    subscribing to ``DomainEvent`` catches everything. Delivery walks the
    event's class hierarchy from most to least specific; within one class
    handlers run in subscription order. Handlers run on the publishing thread,
    outside the bus lock, and may subscribe or unsubscribe while running.
    """

    def __init__(self):
        self._subscriptions: Dict[Type[DomainEvent], List[Handler]] = {}
        self._error_handlers: List[ErrorHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        with self._lock:
            self._subscriptions.setdefault(event_type, []).append(handler)
        logger.debug("event_handler_subscribed", event_type=event_type.__name__)

    def subscribe_to_all(self, handler: Handler) -> None:
        self.subscribe(DomainEvent, handler)

    def unsubscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        """Remove one subscription of ``handler``; unknown handlers are ignored."""
        with self._lock:
            handlers = self._subscriptions.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def subscriber_count(self, event_type: Type[DomainEvent]) -> int:
        """Handlers subscribed to exactly ``event_type``."""
        with self._lock:
            return len(self._subscriptions.get(event_type, ()))

    def publish(self, event: DomainEvent) -> None:
        """
        Deliver ``event`` to every matching handler.

        A failing handler is logged and reported to the error handlers; the
        remaining handlers still run.
        """
        for handler in self._handlers_for(event):
            try:
                handler(event)
            except Exception as e:
                logger.error("event_handler_failed", event_type=type(event).__name__, error=str(e), exc_info=True)
                self._report(e, event)

    def on_error(self, handler: ErrorHandler) -> None:
        """Call ``handler(exception, event)`` whenever an event handler raises."""
        with self._lock:
            self._error_handlers.append(handler)

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()
            self._error_handlers.clear()

    def _handlers_for(self, event: DomainEvent) -> List[Handler]:
        with self._lock:
            matched: List[Handler] = []
            for cls in type(event).__mro__:
                matched.extend(self._subscriptions.get(cls, ()))
                if cls is DomainEvent:
                    break
            return matched

    def _report(self, error: Exception, event: DomainEvent) -> None:
        with self._lock:
            error_handlers = list(self._error_handlers)
        for error_handler in error_handlers:
            try:
                error_handler(error, event)
            except Exception:
                logger.exception("event_bus_error_handler_failed", event_type=type(event).__name__)
