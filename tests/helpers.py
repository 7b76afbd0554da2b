"""Test doubles and helpers shared by the unit tests."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from dnssd_session.domain.contracts import DiscoveryProvider
from dnssd_session.domain.events import DomainEvent
from dnssd_session.domain.service import ServiceDescriptor, ServiceReference
from dnssd_session.infrastructure.event_bus import EventBus
from dnssd_session.session import DiscoverySession


@dataclass
class PendingCall:
    """One provider call waiting for the test to complete it."""

    operation: str
    args: tuple
    on_success: Callable
    on_failure: Callable[[int], None]
    extra: Dict[str, Callable] = field(default_factory=dict)

    def succeed(self, *result: Any) -> None:
        self.on_success(*result)

    def fail(self, code: int) -> None:
        self.on_failure(code)


class ScriptedProvider(DiscoveryProvider):
    """Records every call; nothing completes until the test says so.

    ``calls`` keeps the order operations were issued in, e.g.
    ``["advertise:A", "withdraw", "advertise:B"]``.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.pending: List[PendingCall] = []
        self.history: List[PendingCall] = []
        self.closed = False

    def advertise(self, descriptor, on_success, on_failure):
        self._record("advertise", descriptor.name, (descriptor,), on_success, on_failure)

    def withdraw(self, on_success, on_failure):
        self._record("withdraw", None, (), on_success, on_failure)

    def watch(self, service_type, on_found, on_lost, on_success, on_failure):
        self._record(
            "watch",
            service_type,
            (service_type,),
            on_success,
            on_failure,
            extra={"found": on_found, "lost": on_lost},
        )

    def unwatch(self, on_success, on_failure):
        self._record("unwatch", None, (), on_success, on_failure)

    def resolve(self, reference, on_success, on_failure):
        self._record("resolve", reference.name, (reference,), on_success, on_failure)

    def close(self):
        self.closed = True

    # --- Test helpers ---

    def in_flight(self, operation: str) -> List[PendingCall]:
        return [call for call in self.pending if call.operation == operation]

    def take(self, operation: str) -> PendingCall:
        """Remove and return the oldest pending call of ``operation``."""
        for call in self.pending:
            if call.operation == operation:
                self.pending.remove(call)
                return call
        raise AssertionError(f"no pending {operation} call; calls so far: {self.calls}")

    def last_watch(self) -> PendingCall:
        watches = [call for call in self.history if call.operation == "watch"]
        assert watches, "watch was never called"
        return watches[-1]

    def found(self, name: str, service_type: str = "_http._tcp") -> None:
        self.last_watch().extra["found"](ServiceReference(name=name, service_type=service_type))

    def lost(self, name: str, service_type: str = "_http._tcp") -> None:
        self.last_watch().extra["lost"](ServiceReference(name=name, service_type=service_type))

    def _record(self, operation, label, args, on_success, on_failure, extra=None):
        self.calls.append(operation if label is None else f"{operation}:{label}")
        call = PendingCall(operation, args, on_success, on_failure, extra or {})
        self.pending.append(call)
        self.history.append(call)


class EventRecorder:
    """Collects every event published on a bus, in order."""

    def __init__(self, bus: EventBus):
        self.events: List[DomainEvent] = []
        bus.subscribe_to_all(self.events.append)

    def of_type(self, event_type) -> List[DomainEvent]:
        return [event for event in self.events if isinstance(event, event_type)]

    def types(self) -> List[str]:
        return [event.__class__.__name__ for event in self.events]


def make_descriptor(name: str = "Foo", service_type: str = "_myproto._tcp", port: int = 9000, **attributes):
    return ServiceDescriptor.create(name, service_type, port, attributes or None)


def registered(session: DiscoverySession, provider: ScriptedProvider, descriptor: Optional[ServiceDescriptor] = None):
    """Drive the session to REGISTERED with ``descriptor``."""
    descriptor = descriptor or make_descriptor()
    session.register(descriptor)
    provider.take("advertise").succeed(descriptor.name)
    return descriptor


def discovering(session: DiscoverySession, provider: ScriptedProvider, service_type: str = "_http._tcp") -> None:
    """Drive the session to ACTIVE discovery of ``service_type``."""
    session.discover(service_type)
    provider.take("watch").succeed()
