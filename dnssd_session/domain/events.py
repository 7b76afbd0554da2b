"""Domain events for the discovery session.

Every public notification (registered, found, lost, resolved, errors) is a
domain event. The session hands events to its notification sink in the order
they occurred.
"""

from abc import ABC
from dataclasses import dataclass
import time
from typing import Any, Dict, Optional
import uuid

from .service import ResolvedService, ServiceReference
from .value_objects import describe_error, ErrorKind


class DomainEvent(ABC):
    """
    Base class for all domain events.

    Note: Not a dataclass to avoid inheritance issues.
    Subclasses should be dataclasses.
    """

    def __init__(self):
        self.event_id: str = str(uuid.uuid4())
        self.occurred_at: float = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        data = {}
        for key, value in self.__dict__.items():
            data[key] = value.to_dict() if hasattr(value, "to_dict") else value
        return {"event_type": self.__class__.__name__, **data}


# Registration Events


@dataclass
class ServiceRegistered(DomainEvent):
    """Published when the provider confirms the local advertisement."""

    name: str  # effective name, may differ from the requested one
    service_type: str
    port: int

    def __post_init__(self):
        super().__init__()


@dataclass
class ServiceUnregistered(DomainEvent):
    """Published when the provider confirms the advertisement was withdrawn."""

    name: Optional[str]
    service_type: str

    def __post_init__(self):
        super().__init__()


# Discovery Events


@dataclass
class DiscoveryStarted(DomainEvent):
    """Published when a watch for a service type becomes active."""

    service_type: str

    def __post_init__(self):
        super().__init__()


@dataclass
class DiscoveryStopped(DomainEvent):
    """Published when the active watch is stopped."""

    service_type: str

    def __post_init__(self):
        super().__init__()


@dataclass
class ServiceFound(DomainEvent):
    """Published when a peer service of the watched type appears."""

    reference: ServiceReference

    def __post_init__(self):
        super().__init__()


@dataclass
class ServiceLost(DomainEvent):
    """Published when a peer service disappears.

    Always forwarded, even if the name was not in the known services.
    """

    reference: ServiceReference

    def __post_init__(self):
        super().__init__()


# Resolution Events


@dataclass
class ServiceResolved(DomainEvent):
    """Published when a reference was resolved to connectable details."""

    service: ResolvedService

    def __post_init__(self):
        super().__init__()


# Failures


@dataclass
class OperationFailed(DomainEvent):
    """Published once per provider failure. Failures are never retried."""

    kind: ErrorKind
    code: int
    subject: Optional[str] = None  # service name or type the operation was about

    def __post_init__(self):
        super().__init__()

    @property
    def message(self) -> str:
        return describe_error(self.code)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind.name
        data["message"] = self.message
        return data
