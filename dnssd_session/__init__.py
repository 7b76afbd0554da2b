"""dnssd-session - DNS-SD service registration, discovery and resolution lifecycle.

The :class:`DiscoverySession` sequences advertise/withdraw, watch/unwatch and
resolve operations against an asynchronous :class:`DiscoveryProvider`, and
keeps the list of peer services currently known for the active watch.

Typical use:

    runtime = create_runtime()
    runtime.session.set_service_listener(listener)
    runtime.session.register(ServiceDescriptor.create("printer", "_ipp._tcp", 631))
    runtime.session.discover("_ipp._tcp")
"""

from .bootstrap.runtime import create_runtime, Runtime
from .config import load_config, SessionConfig
from .domain.contracts import DiscoveryProvider, ErrorListener, NotificationSink, ResolveListener, ServiceListener
from .domain.events import (
    DiscoveryStarted,
    DiscoveryStopped,
    DomainEvent,
    OperationFailed,
    ServiceFound,
    ServiceLost,
    ServiceRegistered,
    ServiceResolved,
    ServiceUnregistered,
)
from .domain.exceptions import (
    ConfigurationError,
    DnssdSessionError,
    ProviderError,
    SessionClosedError,
    ValidationError,
)
from .domain.service import ResolvedService, ServiceDescriptor, ServiceReference
from .domain.value_objects import describe_error, DiscoveryState, ErrorKind, ProviderErrorCode, RegistrationState
from .infrastructure.event_bus import EventBus
from .infrastructure.notification_sinks import (
    AsyncioNotificationSink,
    ImmediateNotificationSink,
    ThreadNotificationSink,
)
from .infrastructure.zeroconf_provider import ZeroconfDiscoveryProvider
from .session import DiscoverySession

__version__ = "0.1.0"

__all__ = [
    # Session
    "DiscoverySession",
    "Runtime",
    "create_runtime",
    # Configuration
    "SessionConfig",
    "load_config",
    # Service values
    "ServiceDescriptor",
    "ServiceReference",
    "ResolvedService",
    # States and codes
    "RegistrationState",
    "DiscoveryState",
    "ErrorKind",
    "ProviderErrorCode",
    "describe_error",
    # Contracts
    "DiscoveryProvider",
    "NotificationSink",
    "ErrorListener",
    "ServiceListener",
    "ResolveListener",
    # Events
    "DomainEvent",
    "ServiceRegistered",
    "ServiceUnregistered",
    "DiscoveryStarted",
    "DiscoveryStopped",
    "ServiceFound",
    "ServiceLost",
    "ServiceResolved",
    "OperationFailed",
    # Infrastructure
    "EventBus",
    "ImmediateNotificationSink",
    "ThreadNotificationSink",
    "AsyncioNotificationSink",
    "ZeroconfDiscoveryProvider",
    # Exceptions
    "DnssdSessionError",
    "ValidationError",
    "ConfigurationError",
    "ProviderError",
    "SessionClosedError",
]
