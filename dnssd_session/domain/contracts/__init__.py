"""Domain contracts - interfaces for external dependencies.

This module defines contracts (abstract interfaces) that the domain layer
depends on. Implementations are provided by the infrastructure layer or by
the host application.
"""

from .discovery_provider import DiscoveryProvider
from .listeners import ErrorListener, ResolveListener, ServiceListener
from .notification_sink import NotificationSink

__all__ = [
    "DiscoveryProvider",
    "ErrorListener",
    "NotificationSink",
    "ResolveListener",
    "ServiceListener",
]
