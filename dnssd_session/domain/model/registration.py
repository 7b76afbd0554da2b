"""Registration controller - advertise/withdraw lifecycle of the local service."""

from functools import partial
from typing import Callable, Optional

from ...logging_config import get_logger
from ..contracts.discovery_provider import DiscoveryProvider
from ..events import DomainEvent, OperationFailed, ServiceRegistered, ServiceUnregistered
from ..exceptions import ValidationError
from ..service import ServiceDescriptor
from ..value_objects import describe_error, ErrorKind, RegistrationState

logger = get_logger(__name__)

Guard = Callable[[Callable], Callable]


class RegistrationController:
    """
    Owns the one locally advertised service.

    State machine: IDLE -> REGISTERING -> REGISTERED -> IDLE, with
    REGISTERING -> IDLE on advertise failure.

    Not thread-safe on its own: ``guard`` wraps every provider callback so it
    runs under the session lock, and public methods are called with the lock
    held.
    """

    def __init__(
        self,
        provider: DiscoveryProvider,
        emit: Callable[[DomainEvent], None],
        guard: Guard,
    ):
        self._provider = provider
        self._emit = emit
        self._guard = guard

        self._state = RegistrationState.IDLE
        self._descriptor: Optional[ServiceDescriptor] = None
        self._name: Optional[str] = None
        self._withdrawing = False
        # Descriptor to advertise once the in-flight withdraw completes.
        self._pending: Optional[ServiceDescriptor] = None
        self._closing = False

    @property
    def state(self) -> RegistrationState:
        return self._state

    @property
    def name(self) -> Optional[str]:
        """Effective name confirmed by the provider, None unless registered."""
        return self._name

    @property
    def descriptor(self) -> Optional[ServiceDescriptor]:
        return self._descriptor

    @property
    def withdrawing(self) -> bool:
        return self._withdrawing

    @property
    def pending(self) -> Optional[ServiceDescriptor]:
        return self._pending

    @property
    def closing(self) -> bool:
        return self._closing

    def register(self, descriptor: ServiceDescriptor) -> None:
        if descriptor is None:
            raise ValidationError("descriptor is required", field="descriptor", value=None)

        if self._state == RegistrationState.REGISTERING:
            logger.debug("register_ignored_in_flight", name=descriptor.name)
            return

        if self._state == RegistrationState.REGISTERED:
            # Replace: withdraw first, advertise the new descriptor afterwards.
            if self._pending is not None:
                logger.debug("reregister_overwritten", previous=self._pending.name, name=descriptor.name)
            self._pending = descriptor
            self.unregister()
            return

        self._descriptor = descriptor
        self._state = RegistrationState.REGISTERING
        logger.debug("advertise_requested", name=descriptor.name, service_type=descriptor.service_type)
        self._provider.advertise(
            descriptor,
            self._guard(partial(self._on_advertised, descriptor)),
            self._guard(partial(self._on_advertise_failed, descriptor)),
        )

    def unregister(self) -> None:
        if self._state != RegistrationState.REGISTERED or self._withdrawing:
            return

        self._withdrawing = True
        logger.debug("withdraw_requested", name=self._name)
        self._provider.withdraw(
            self._guard(self._on_withdrawn),
            self._guard(self._on_withdraw_failed),
        )

    def shutdown(self) -> None:
        """Withdraw the service, now or as soon as an in-flight advertise lands.

        Any pending replacement is dropped and none is accepted afterwards.
        """
        self._closing = True
        if self._pending is not None:
            logger.debug("reregister_dropped", name=self._pending.name)
            self._pending = None
        self.unregister()

    # --- Provider callbacks ---

    def _on_advertised(self, descriptor: ServiceDescriptor, name: str) -> None:
        self._state = RegistrationState.REGISTERED
        self._name = name or descriptor.name
        logger.info("service_registered", name=self._name, requested=descriptor.name)
        self._emit(ServiceRegistered(name=self._name, service_type=descriptor.service_type, port=descriptor.port))

        if self._closing:
            self.unregister()

    def _on_advertise_failed(self, descriptor: ServiceDescriptor, code: int) -> None:
        self._state = RegistrationState.IDLE
        self._descriptor = None
        self._name = None
        logger.warning("registration_failed", name=descriptor.name, code=code, reason=describe_error(code))
        self._emit(OperationFailed(kind=ErrorKind.REGISTRATION_FAILED, code=code, subject=descriptor.name))

    def _on_withdrawn(self) -> None:
        name = self._name
        service_type = self._descriptor.service_type if self._descriptor else ""

        self._state = RegistrationState.IDLE
        self._descriptor = None
        self._name = None
        self._withdrawing = False
        logger.info("service_unregistered", name=name)
        self._emit(ServiceUnregistered(name=name, service_type=service_type))

        if self._pending is not None and self._state != RegistrationState.REGISTERING and not self._closing:
            pending, self._pending = self._pending, None
            self.register(pending)

    def _on_withdraw_failed(self, code: int) -> None:
        # Nothing was torn down: stay REGISTERED so unregister() can be retried.
        self._withdrawing = False
        if self._pending is not None:
            logger.debug("reregister_dropped", name=self._pending.name)
            self._pending = None
        logger.warning("unregistration_failed", name=self._name, code=code, reason=describe_error(code))
        self._emit(OperationFailed(kind=ErrorKind.UNREGISTRATION_FAILED, code=code, subject=self._name))
