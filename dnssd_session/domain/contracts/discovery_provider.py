"""Contract for the network stack that actually speaks mDNS/DNS-SD.

Every operation returns immediately and completes exactly once, later, by
calling either its success or its failure callback. Failure callbacks receive
an opaque int status code (see ``ProviderErrorCode`` for known values).

Implementations should deliver callbacks for one provider instance on one
logical stream. The session tolerates delivery from arbitrary threads, but
it cannot restore an order the provider itself scrambled.
"""

from abc import ABC, abstractmethod
from typing import Callable

from ..service import ResolvedService, ServiceDescriptor, ServiceReference

SuccessCallback = Callable[[], None]
FailureCallback = Callable[[int], None]
AdvertisedCallback = Callable[[str], None]
ReferenceCallback = Callable[[ServiceReference], None]
ResolvedCallback = Callable[[ResolvedService], None]


class DiscoveryProvider(ABC):
    """Asynchronous advertise/watch/resolve primitives."""

    @abstractmethod
    def advertise(
        self,
        descriptor: ServiceDescriptor,
        on_success: AdvertisedCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Publish ``descriptor``.

        ``on_success`` receives the effective service name, which the network
        may have changed to avoid a collision.
        """

    @abstractmethod
    def withdraw(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        """Stop advertising the service published by :meth:`advertise`."""

    @abstractmethod
    def watch(
        self,
        service_type: str,
        on_found: ReferenceCallback,
        on_lost: ReferenceCallback,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Start watching for peers of ``service_type``.

        ``on_found``/``on_lost`` are pushed for as long as the watch is active.
        """

    @abstractmethod
    def unwatch(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        """Stop the watch started by :meth:`watch`."""

    @abstractmethod
    def resolve(
        self,
        reference: ServiceReference,
        on_success: ResolvedCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Look up host, port and attributes for ``reference``.

        Several resolutions may be outstanding at once.
        """

    def close(self) -> None:
        """Release network resources. Optional."""
