"""Resolver - turns a discovered reference into connectable details."""

from functools import partial
from typing import Callable

from ...logging_config import get_logger
from ..contracts.discovery_provider import DiscoveryProvider
from ..events import DomainEvent, OperationFailed, ServiceResolved
from ..exceptions import ValidationError
from ..service import ResolvedService, ServiceReference
from ..value_objects import describe_error, ErrorKind

logger = get_logger(__name__)


class Resolver:
    """Stateless pass-through: any number of resolutions may be outstanding."""

    def __init__(
        self,
        provider: DiscoveryProvider,
        emit: Callable[[DomainEvent], None],
        guard: Callable[[Callable], Callable],
    ):
        self._provider = provider
        self._emit = emit
        self._guard = guard

    def resolve(self, reference: ServiceReference) -> None:
        if reference is None:
            raise ValidationError("reference is required", field="reference", value=None)

        logger.debug("resolve_requested", name=reference.name, service_type=reference.service_type)
        self._provider.resolve(
            reference,
            self._guard(self._on_resolved),
            self._guard(partial(self._on_resolve_failed, reference)),
        )

    def _on_resolved(self, service: ResolvedService) -> None:
        logger.debug("service_resolved", name=service.name, host=service.host, port=service.port)
        self._emit(ServiceResolved(service=service))

    def _on_resolve_failed(self, reference: ServiceReference, code: int) -> None:
        logger.warning("resolve_failed", name=reference.name, code=code, reason=describe_error(code))
        self._emit(OperationFailed(kind=ErrorKind.RESOLVE_FAILED, code=code, subject=reference.name))
