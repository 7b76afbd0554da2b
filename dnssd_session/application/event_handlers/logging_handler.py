"""Logging event handler - one log line per session notification."""

import json
import logging
from typing import Callable, Dict, Type

from ...domain.events import (
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
from ...logging_config import get_logger

logger = get_logger(__name__)

# Unlisted event types log at the handler's log_level.
_LEVELS: Dict[Type[DomainEvent], int] = {
    OperationFailed: logging.WARNING,
    ServiceRegistered: logging.INFO,
    ServiceUnregistered: logging.INFO,
    DiscoveryStarted: logging.INFO,
    DiscoveryStopped: logging.INFO,
    ServiceFound: logging.DEBUG,
    ServiceLost: logging.DEBUG,
    ServiceResolved: logging.DEBUG,
}


def _failed(event: OperationFailed) -> str:
    subject = f" '{event.subject}'" if event.subject else ""
    return f"{event.kind.name}{subject}: {event.message} (code {event.code})"


def _resolved(event: ServiceResolved) -> str:
    service = event.service
    return f"Resolved '{service.name}' to {service.host}:{service.port}"


_FORMATTERS: Dict[Type[DomainEvent], Callable[..., str]] = {
    ServiceRegistered: lambda e: f"Service '{e.name}' registered as {e.service_type} on port {e.port}",
    ServiceUnregistered: lambda e: f"Service '{e.name}' unregistered",
    DiscoveryStarted: lambda e: f"Watching for {e.service_type}",
    DiscoveryStopped: lambda e: f"Stopped watching {e.service_type}",
    ServiceFound: lambda e: f"Found '{e.reference.name}' ({e.reference.service_type})",
    ServiceLost: lambda e: f"Lost '{e.reference.name}' ({e.reference.service_type})",
    ServiceResolved: _resolved,
    OperationFailed: _failed,
}


class LoggingEventHandler:
    """
    Subscribe with ``event_bus.subscribe_to_all(LoggingEventHandler())``.

    Failures log at WARNING, registration and discovery lifecycle at INFO,
    peer notifications at DEBUG. Events this handler does not know are
    dumped as JSON at ``log_level``.
    """

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    def __call__(self, event: DomainEvent) -> None:
        self.handle(event)

    def handle(self, event: DomainEvent) -> None:
        level = _LEVELS.get(type(event), self.log_level)
        logger.log(level, self._format_event(event))

    def _format_event(self, event: DomainEvent) -> str:
        formatter = _FORMATTERS.get(type(event))
        if formatter is None:
            body = json.dumps(event.to_dict(), default=str)
        else:
            body = formatter(event)
        return f"[EVENT:{type(event).__name__}] {body}"
