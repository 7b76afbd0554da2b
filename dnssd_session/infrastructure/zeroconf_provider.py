"""DiscoveryProvider backed by python-zeroconf.

Blocking zeroconf calls (register, unregister, browser setup) run on one
worker thread, so their completions reach the session in the order the
operations were issued. Resolutions run on a small separate pool because each
one may wait up to ``resolve_timeout_ms``. Found/lost notifications arrive on
zeroconf's own browser thread.
"""

from concurrent.futures import ThreadPoolExecutor
import socket
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from zeroconf import IPVersion, NonUniqueNameException, ServiceBrowser, ServiceInfo, ServiceStateChange, Zeroconf

from ..domain.contracts.discovery_provider import (
    AdvertisedCallback,
    DiscoveryProvider,
    FailureCallback,
    ReferenceCallback,
    ResolvedCallback,
    SuccessCallback,
)
from ..domain.exceptions import ProviderError
from ..domain.service import ResolvedService, ServiceDescriptor, ServiceReference
from ..domain.value_objects import ProviderErrorCode, qualify_service_type
from ..logging_config import get_logger

logger = get_logger(__name__)

IP_VERSIONS = {
    "v4": IPVersion.V4Only,
    "v6": IPVersion.V6Only,
    "all": IPVersion.All,
}

DEFAULT_RESOLVE_TIMEOUT_MS = 3000


def get_local_ip() -> str:
    """Get the LAN IP address of this machine.

    Returns:
        Local IP address as string, or 127.0.0.1 if detection fails.
    """
    try:
        # No packet is sent: connecting a UDP socket only picks a route.
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.settimeout(2)
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


def error_code_for(exc: Exception) -> int:
    """Map an exception raised while talking to zeroconf to a provider code."""
    if isinstance(exc, ProviderError):
        return exc.code
    if isinstance(exc, NonUniqueNameException):
        return ProviderErrorCode.ALREADY_ACTIVE
    return ProviderErrorCode.INTERNAL_ERROR


def instance_name(full_name: str, qualified_type: str) -> str:
    """``printer1._http._tcp.local.`` -> ``printer1``"""
    suffix = "." + qualified_type
    if full_name.endswith(suffix):
        return full_name[: -len(suffix)]
    return full_name


def decode_properties(properties: Optional[Dict[Any, Any]]) -> Dict[str, str]:
    """TXT record (bytes keys/values, None for flags) -> str mapping."""
    decoded = {}
    for key, value in (properties or {}).items():
        key_str = key.decode("utf-8", errors="replace") if isinstance(key, bytes) else str(key)
        if value is None:
            val_str = ""
        elif isinstance(value, bytes):
            val_str = value.decode("utf-8", errors="replace")
        else:
            val_str = str(value)
        decoded[key_str] = val_str
    return decoded


class ZeroconfDiscoveryProvider(DiscoveryProvider):
    """Advertise, browse and resolve DNS-SD services with python-zeroconf.

    Supports one advertised service and one browsed type at a time, which is
    all the session ever asks for. A second advertise or watch fails with
    ALREADY_ACTIVE, matching platform NSD stacks.
    """

    def __init__(
        self,
        zeroconf: Optional[Zeroconf] = None,
        ip_version: str = "v4",
        resolve_timeout_ms: int = DEFAULT_RESOLVE_TIMEOUT_MS,
        addresses: Optional[List[str]] = None,
        resolve_workers: int = 4,
    ):
        """
        Args:
            zeroconf: Shared Zeroconf instance; one is created lazily if omitted
                and closed by :meth:`close`.
            ip_version: "v4", "v6" or "all" for a lazily created instance.
            resolve_timeout_ms: How long a resolution waits for answers.
            addresses: Addresses to advertise (detected LAN IP if omitted).
            resolve_workers: Maximum concurrent resolutions.
        """
        if ip_version not in IP_VERSIONS:
            raise ValueError(f"ip_version must be one of {sorted(IP_VERSIONS)}")

        self._zeroconf = zeroconf
        self._owns_zeroconf = zeroconf is None
        self._ip_version = ip_version
        self._resolve_timeout_ms = resolve_timeout_ms
        self._addresses = list(addresses) if addresses else None

        self._zc_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dnssd-provider")
        self._resolve_executor = ThreadPoolExecutor(max_workers=resolve_workers, thread_name_prefix="dnssd-resolve")

        self._info: Optional[ServiceInfo] = None
        self._browser: Optional[ServiceBrowser] = None

    # --- DiscoveryProvider ---

    def advertise(
        self,
        descriptor: ServiceDescriptor,
        on_success: AdvertisedCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._executor.submit(self._run, "advertise", self._advertise, (descriptor,), on_success, on_failure)

    def withdraw(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        self._executor.submit(self._run, "withdraw", self._withdraw, (), on_success, on_failure)

    def watch(
        self,
        service_type: str,
        on_found: ReferenceCallback,
        on_lost: ReferenceCallback,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._executor.submit(
            self._run, "watch", self._watch, (service_type, on_found, on_lost), on_success, on_failure
        )

    def unwatch(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        self._executor.submit(self._run, "unwatch", self._unwatch, (), on_success, on_failure)

    def resolve(
        self,
        reference: ServiceReference,
        on_success: ResolvedCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._resolve_executor.submit(self._run, "resolve", self._resolve, (reference,), on_success, on_failure)

    def close(self) -> None:
        """Cancel browsing, withdraw our service and release the socket."""
        self._executor.shutdown(wait=True)
        self._resolve_executor.shutdown(wait=False, cancel_futures=True)

        if self._browser is not None:
            self._browser.cancel()
            self._browser = None

        zc = self._zeroconf
        if zc is not None and self._info is not None:
            try:
                zc.unregister_service(self._info)
            except Exception:
                logger.exception("zeroconf_unregister_on_close_failed")
            self._info = None

        if zc is not None and self._owns_zeroconf:
            zc.close()
            self._zeroconf = None
        logger.debug("zeroconf_provider_closed")

    # --- Operations (worker threads) ---

    def _advertise(self, descriptor: ServiceDescriptor) -> str:
        if self._info is not None:
            raise ProviderError("service_already_advertised", ProviderErrorCode.ALREADY_ACTIVE)

        qualified = qualify_service_type(descriptor.service_type)
        info = ServiceInfo(
            qualified,
            f"{descriptor.name}.{qualified}",
            port=descriptor.port,
            properties=dict(descriptor.attributes),
            server=f"{socket.gethostname()}.local.",
            parsed_addresses=self._addresses or [get_local_ip()],
        )
        # On collision zeroconf renames to "<name>-2" etc. and updates info.name.
        self._zc().register_service(info, allow_name_change=True)
        self._info = info
        logger.info("zeroconf_service_registered", name=info.name, port=descriptor.port)
        return info.get_name()

    def _withdraw(self) -> None:
        if self._info is None:
            raise ProviderError("no_service_advertised", ProviderErrorCode.INTERNAL_ERROR)
        self._zc().unregister_service(self._info)
        logger.info("zeroconf_service_unregistered", name=self._info.name)
        self._info = None

    def _watch(self, requested_type: str, on_found: ReferenceCallback, on_lost: ReferenceCallback) -> None:
        if self._browser is not None:
            raise ProviderError("already_watching", ProviderErrorCode.ALREADY_ACTIVE)

        qualified = qualify_service_type(requested_type)

        def on_state_change(zeroconf: Zeroconf, service_type: str, name: str, state_change: ServiceStateChange) -> None:
            reference = ServiceReference(name=instance_name(name, qualified), service_type=requested_type)
            if state_change is ServiceStateChange.Added:
                on_found(reference)
            elif state_change is ServiceStateChange.Removed:
                on_lost(reference)

        self._browser = ServiceBrowser(self._zc(), qualified, handlers=[on_state_change])
        logger.info("zeroconf_browse_started", service_type=qualified)

    def _unwatch(self) -> None:
        if self._browser is None:
            raise ProviderError("not_watching", ProviderErrorCode.INTERNAL_ERROR)
        self._browser.cancel()
        self._browser = None
        logger.info("zeroconf_browse_stopped")

    def _resolve(self, reference: ServiceReference) -> ResolvedService:
        qualified = qualify_service_type(reference.service_type)
        info = self._zc().get_service_info(
            qualified,
            f"{reference.name}.{qualified}",
            timeout=self._resolve_timeout_ms,
        )
        if info is None:
            raise ProviderError("resolve_timeout", ProviderErrorCode.INTERNAL_ERROR)

        addresses = info.parsed_addresses()
        host = addresses[0] if addresses else (info.server or "").rstrip(".")
        return ResolvedService.create(
            name=reference.name,
            service_type=reference.service_type,
            host=host,
            port=info.port or 0,
            attributes=decode_properties(info.properties),
        )

    # --- Helpers ---

    def _zc(self) -> Zeroconf:
        with self._zc_lock:
            if self._zeroconf is None:
                self._zeroconf = Zeroconf(ip_version=IP_VERSIONS[self._ip_version])
            return self._zeroconf

    def _run(
        self,
        operation_name: str,
        operation: Callable,
        args: Tuple,
        on_success: Callable,
        on_failure: FailureCallback,
    ) -> None:
        try:
            result = operation(*args)
        except Exception as e:
            code = error_code_for(e)
            logger.warning("zeroconf_operation_failed", operation=operation_name, code=int(code), error=str(e))
            self._complete(operation_name, on_failure, int(code))
            return

        if result is None:
            self._complete(operation_name, on_success)
        else:
            self._complete(operation_name, on_success, result)

    @staticmethod
    def _complete(operation_name: str, callback: Callable, *args) -> None:
        # Nothing inspects the executor future, so callback errors are logged here.
        try:
            callback(*args)
        except Exception:
            logger.exception("provider_callback_failed", operation=operation_name)
