"""Discovery session - the public entry point.

Composes the registration controller, the discovery controller and the
resolver around one provider, one lock and one ordered notification stream.
"""

from collections import deque
from contextlib import contextmanager
from functools import partial, wraps
import threading
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, Tuple, Type

from .domain.contracts import DiscoveryProvider, ErrorListener, NotificationSink, ResolveListener, ServiceListener
from .domain.events import DomainEvent, OperationFailed, ServiceFound, ServiceLost, ServiceResolved
from .domain.exceptions import SessionClosedError
from .domain.model import DiscoveryController, RegistrationController, Resolver
from .domain.service import ServiceDescriptor, ServiceReference
from .domain.value_objects import DiscoveryState, RegistrationState
from .infrastructure.event_bus import EventBus
from .infrastructure.notification_sinks import ImmediateNotificationSink
from .logging_config import get_logger

logger = get_logger(__name__)

_Subscription = Tuple[Type[DomainEvent], Callable[[DomainEvent], None]]


class DiscoverySession:
    """
    Thread-safe register/discover/resolve lifecycle over a DiscoveryProvider.

    Every public method and every provider callback runs under one re-entrant
    lock, so providers may complete on any thread, or synchronously from
    inside the call that started the operation. No method blocks on the
    network: results arrive later as domain events on ``event_bus``,
    delivered through ``sink`` in the order they occurred.

    Example:
        session = DiscoverySession(provider)
        session.set_service_listener(my_listener)
        session.discover("_http._tcp")
    """

    def __init__(
        self,
        provider: DiscoveryProvider,
        event_bus: Optional[EventBus] = None,
        sink: Optional[NotificationSink] = None,
        exclude_own_service: bool = False,
    ):
        """Initialize the session.

        Args:
            provider: Network stack implementing the DiscoveryProvider contract.
            event_bus: Bus that receives domain events (a private one if omitted).
            sink: Execution context for notifications (inline if omitted).
            exclude_own_service: Hide our own registered service from discovery.
        """
        self._provider = provider
        self._event_bus = event_bus or EventBus()
        self._sink = sink or ImmediateNotificationSink()

        self._lock = threading.RLock()
        self._events: Deque[DomainEvent] = deque()
        self._flushing = False
        self._closed = False
        self._listeners: Dict[str, List[_Subscription]] = {}

        self._registration = RegistrationController(provider, self._record, self._guard)
        self._discovery = DiscoveryController(
            provider,
            self._record,
            self._guard,
            own_name=lambda: self._registration.name,
            exclude_own_service=exclude_own_service,
        )
        self._resolver = Resolver(provider, self._record, self._guard)

    # --- Operations ---

    def register(self, descriptor: ServiceDescriptor) -> None:
        """Advertise ``descriptor``, replacing any current registration.

        Ignored while another advertise is in flight.
        """
        with self._operation():
            self._registration.register(descriptor)

    def unregister(self) -> None:
        """Withdraw the registered service. No effect unless registered."""
        with self._operation():
            self._registration.unregister()

    def discover(self, service_type: str) -> None:
        """Watch for peers of ``service_type``, restarting any current watch.

        Known services are cleared immediately.
        """
        with self._operation():
            self._discovery.discover(service_type)

    def stop_discovery(self) -> None:
        """Stop the active watch. No effect unless discovery is active."""
        with self._operation():
            self._discovery.stop_discovery()

    def resolve(self, reference: ServiceReference) -> None:
        """Resolve ``reference``; the result arrives as ServiceResolved."""
        with self._operation():
            self._resolver.resolve(reference)

    # --- Queries ---

    def get_known_services(self) -> List[ServiceReference]:
        """Snapshot of the services found by the current watch."""
        with self._lock:
            return self._discovery.known_services()

    def get_registered_name(self) -> Optional[str]:
        """Effective name of our registered service, if registered."""
        with self._lock:
            return self._registration.name

    @property
    def registration_state(self) -> RegistrationState:
        with self._lock:
            return self._registration.state

    @property
    def discovery_state(self) -> DiscoveryState:
        with self._lock:
            return self._discovery.state

    @property
    def exclude_own_service(self) -> bool:
        with self._lock:
            return self._discovery.exclude_own_service

    def set_exclude_own_service(self, exclude: bool) -> None:
        """Suppress found notifications for our own registered service."""
        with self._lock:
            self._discovery.exclude_own_service = bool(exclude)

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def provider(self) -> DiscoveryProvider:
        return self._provider

    @property
    def closed(self) -> bool:
        return self._closed

    def to_status_dict(self) -> Dict[str, Any]:
        """Get status as dictionary."""
        with self._lock:
            descriptor = self._registration.descriptor
            return {
                "registration": {
                    "state": self._registration.state.value,
                    "name": self._registration.name,
                    "descriptor": descriptor.to_dict() if descriptor else None,
                    "withdrawing": self._registration.withdrawing,
                },
                "discovery": {
                    "state": self._discovery.state.value,
                    "service_type": self._discovery.service_type,
                    "stopping": self._discovery.stopping,
                    "exclude_own_service": self._discovery.exclude_own_service,
                    "known_services": [ref.to_dict() for ref in self._discovery.known_services()],
                },
                "closed": self._closed,
            }

    # --- Listeners ---

    def set_error_listener(self, listener: Optional[ErrorListener]) -> None:
        """Replace the error listener; None detaches it."""
        subscriptions = []
        if listener is not None:
            subscriptions.append((OperationFailed, lambda event: listener.on_error(event.kind, event.code)))
        self._replace_listener("error", subscriptions)

    def set_service_listener(self, listener: Optional[ServiceListener]) -> None:
        """Replace the found/lost listener; None detaches it."""
        subscriptions = []
        if listener is not None:
            subscriptions.append((ServiceFound, lambda event: listener.on_service_found(event.reference)))
            subscriptions.append((ServiceLost, lambda event: listener.on_service_lost(event.reference)))
        self._replace_listener("service", subscriptions)

    def set_resolve_listener(self, listener: Optional[ResolveListener]) -> None:
        """Replace the resolve listener; None detaches it."""
        subscriptions = []
        if listener is not None:
            subscriptions.append((ServiceResolved, lambda event: listener.on_service_resolved(event.service)))
        self._replace_listener("resolve", subscriptions)

    def _replace_listener(self, slot: str, subscriptions: List[_Subscription]) -> None:
        with self._lock:
            for event_type, handler in self._listeners.pop(slot, []):
                self._event_bus.unsubscribe(event_type, handler)
            for event_type, handler in subscriptions:
                self._event_bus.subscribe(event_type, handler)
            if subscriptions:
                self._listeners[slot] = subscriptions

    # --- Lifecycle ---

    def close(self) -> None:
        """Withdraw our service, stop discovery and reject further operations.

        Completions for operations already issued are still processed: pending
        replacements are dropped, and an advertise or watch that succeeds
        after close is withdrawn or stopped straight away.
        """
        with self._lock:
            if self._closed:
                return
            try:
                self._registration.shutdown()
                self._discovery.shutdown()
            finally:
                self._closed = True
                self._flush()
        logger.debug("session_closed")

    # --- Internals ---

    @contextmanager
    def _operation(self) -> Iterator[None]:
        with self._lock:
            if self._closed:
                raise SessionClosedError()
            try:
                yield
            finally:
                self._flush()

    def _record(self, event: DomainEvent) -> None:
        self._events.append(event)

    def _flush(self) -> None:
        # Called with the lock held so the sink sees events in order. A
        # listener running inline may re-enter; the outer loop drains its events.
        if self._flushing:
            return
        self._flushing = True
        try:
            while self._events:
                event = self._events.popleft()
                self._sink.submit(partial(self._event_bus.publish, event))
        finally:
            self._flushing = False

    def _guard(self, callback: Callable) -> Callable:
        """Wrap a provider callback so it runs under the session lock."""

        @wraps(callback)
        def guarded(*args):
            with self._lock:
                try:
                    callback(*args)
                finally:
                    self._flush()

        return guarded
