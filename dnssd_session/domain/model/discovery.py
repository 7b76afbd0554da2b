"""Discovery controller - watch/unwatch lifecycle and the known peer services."""

from functools import partial
from typing import Callable, List, Optional

from ...logging_config import get_logger
from ..contracts.discovery_provider import DiscoveryProvider
from ..events import DiscoveryStarted, DiscoveryStopped, DomainEvent, OperationFailed, ServiceFound, ServiceLost
from ..service import ServiceReference
from ..value_objects import describe_error, DiscoveryState, ErrorKind, validate_service_type
from .known_services import KnownServices

logger = get_logger(__name__)

Guard = Callable[[Callable], Callable]


class DiscoveryController:
    """
    Owns the one outstanding watch and the services it has reported.

    State machine: IDLE -> STARTING -> ACTIVE -> IDLE, with
    STARTING -> IDLE on watch failure.

    Known services belong to the watch about to start: every discover() call
    clears them, including the implicit restart when the type changes.
    """

    def __init__(
        self,
        provider: DiscoveryProvider,
        emit: Callable[[DomainEvent], None],
        guard: Guard,
        own_name: Callable[[], Optional[str]],
        exclude_own_service: bool = False,
    ):
        self._provider = provider
        self._emit = emit
        self._guard = guard
        self._own_name = own_name
        self.exclude_own_service = exclude_own_service

        self._state = DiscoveryState.IDLE
        self._service_type: Optional[str] = None
        self._stopping = False
        # Service type to watch once the in-flight unwatch completes.
        self._pending: Optional[str] = None
        self._closing = False
        self._known = KnownServices()

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def service_type(self) -> Optional[str]:
        return self._service_type

    @property
    def stopping(self) -> bool:
        return self._stopping

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    @property
    def closing(self) -> bool:
        return self._closing

    def known_services(self) -> List[ServiceReference]:
        return self._known.snapshot()

    def discover(self, service_type: str) -> None:
        validate_service_type(service_type)
        self._known.clear()

        if self._state == DiscoveryState.STARTING:
            logger.debug("discover_ignored_in_flight", service_type=service_type)
            return

        if self._state == DiscoveryState.ACTIVE:
            # Restart: stop the current watch, start the new one afterwards.
            self._pending = service_type
            self.stop_discovery()
            return

        self._service_type = service_type
        self._state = DiscoveryState.STARTING
        logger.debug("watch_requested", service_type=service_type)
        self._provider.watch(
            service_type,
            self._guard(self._on_found),
            self._guard(self._on_lost),
            self._guard(partial(self._on_started, service_type)),
            self._guard(partial(self._on_start_failed, service_type)),
        )

    def stop_discovery(self) -> None:
        if self._state != DiscoveryState.ACTIVE or self._stopping:
            return

        self._stopping = True
        logger.debug("unwatch_requested", service_type=self._service_type)
        self._provider.unwatch(
            self._guard(self._on_stopped),
            self._guard(self._on_stop_failed),
        )

    def shutdown(self) -> None:
        """Stop the watch, now or as soon as an in-flight watch starts.

        Any pending restart is dropped and none is accepted afterwards.
        """
        self._closing = True
        if self._pending is not None:
            logger.debug("rediscover_dropped", service_type=self._pending)
            self._pending = None
        self.stop_discovery()

    # --- Provider callbacks ---

    def _on_started(self, service_type: str) -> None:
        self._state = DiscoveryState.ACTIVE
        logger.info("discovery_started", service_type=service_type)
        self._emit(DiscoveryStarted(service_type=service_type))

        if self._closing:
            self.stop_discovery()

    def _on_start_failed(self, service_type: str, code: int) -> None:
        self._state = DiscoveryState.IDLE
        self._service_type = None
        logger.warning("start_discovery_failed", service_type=service_type, code=code, reason=describe_error(code))
        self._emit(OperationFailed(kind=ErrorKind.START_DISCOVERY_FAILED, code=code, subject=service_type))

    def _on_stopped(self) -> None:
        service_type = self._service_type or ""

        self._state = DiscoveryState.IDLE
        self._service_type = None
        self._stopping = False
        logger.info("discovery_stopped", service_type=service_type)
        self._emit(DiscoveryStopped(service_type=service_type))

        if self._pending is not None and self._state != DiscoveryState.STARTING and not self._closing:
            pending, self._pending = self._pending, None
            self.discover(pending)

    def _on_stop_failed(self, code: int) -> None:
        # The watch is still live: stay ACTIVE so stop_discovery() can be retried.
        self._stopping = False
        if self._pending is not None:
            logger.debug("rediscover_dropped", service_type=self._pending)
            self._pending = None
        logger.warning(
            "stop_discovery_failed",
            service_type=self._service_type,
            code=code,
            reason=describe_error(code),
        )
        self._emit(OperationFailed(kind=ErrorKind.STOP_DISCOVERY_FAILED, code=code, subject=self._service_type))

    def _on_found(self, reference: ServiceReference) -> None:
        own_name = self._own_name()
        if self.exclude_own_service and own_name is not None and reference.name == own_name:
            logger.debug("own_service_suppressed", name=reference.name)
            return

        logger.debug("service_found", name=reference.name, service_type=reference.service_type)
        self._known.add(reference)
        self._emit(ServiceFound(reference=reference))

    def _on_lost(self, reference: ServiceReference) -> None:
        removed = self._known.remove(reference.name)
        logger.debug("service_lost", name=reference.name, known=removed is not None)
        self._emit(ServiceLost(reference=reference))
