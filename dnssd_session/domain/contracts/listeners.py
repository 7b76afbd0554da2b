"""Listener interfaces for hosts that prefer callbacks over event subscriptions."""

from typing import Protocol, runtime_checkable

from ..service import ResolvedService, ServiceReference
from ..value_objects import ErrorKind


@runtime_checkable
class ErrorListener(Protocol):
    """Receives every provider failure exactly once."""

    def on_error(self, kind: ErrorKind, code: int) -> None: ...


@runtime_checkable
class ServiceListener(Protocol):
    """Receives found/lost peers of the watched service type."""

    def on_service_found(self, reference: ServiceReference) -> None: ...

    def on_service_lost(self, reference: ServiceReference) -> None: ...


@runtime_checkable
class ResolveListener(Protocol):
    """Receives resolved services."""

    def on_service_resolved(self, service: ResolvedService) -> None: ...
