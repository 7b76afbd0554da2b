"""Value objects for the discovery session.

Contains:
- RegistrationState / DiscoveryState - controller lifecycle states
- ErrorKind - which operation a provider failure belongs to
- ProviderErrorCode - well-known provider status codes and their messages
- service type helpers
"""

from enum import Enum, IntEnum
import re

from .exceptions import ValidationError


class RegistrationState(str, Enum):
    """Lifecycle of the locally advertised service.

    State machine: IDLE -> REGISTERING -> REGISTERED -> IDLE
    """

    IDLE = "idle"
    REGISTERING = "registering"
    REGISTERED = "registered"

    def __str__(self) -> str:
        return self.value


class DiscoveryState(str, Enum):
    """Lifecycle of the active service-type watch.

    State machine: IDLE -> STARTING -> ACTIVE -> IDLE
    """

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"

    def __str__(self) -> str:
        return self.value


class ErrorKind(IntEnum):
    """Operation that failed, passed to error listeners with the provider code."""

    REGISTRATION_FAILED = 1
    UNREGISTRATION_FAILED = 2
    START_DISCOVERY_FAILED = 3
    STOP_DISCOVERY_FAILED = 4
    RESOLVE_FAILED = 5


class ProviderErrorCode(IntEnum):
    """Well-known provider status codes.

    Providers may report any int; these are the values with a known meaning.
    """

    INTERNAL_ERROR = 0
    ALREADY_ACTIVE = 3
    MAX_LIMIT = 4


_ERROR_MESSAGES = {
    ProviderErrorCode.ALREADY_ACTIVE: "The operation failed because it is already active.",
    ProviderErrorCode.INTERNAL_ERROR: "Internal error.",
    ProviderErrorCode.MAX_LIMIT: (
        "The operation failed because the maximum outstanding requests from the applications have reached."
    ),
}


def describe_error(code: int) -> str:
    """Human readable message for a provider status code."""
    try:
        return _ERROR_MESSAGES[ProviderErrorCode(code)]
    except ValueError:
        return "Unknown error."


# _name._tcp or _name._udp, optionally followed by a domain such as "local."
_SERVICE_TYPE_RE = re.compile(r"^_[A-Za-z0-9][A-Za-z0-9-]*\._(tcp|udp)(\.[A-Za-z0-9-]+)*\.?$")

LOCAL_DOMAIN = "local."


def validate_service_type(service_type: str) -> str:
    """Return ``service_type`` unchanged, raising ValidationError if malformed."""
    if not service_type or not isinstance(service_type, str):
        raise ValidationError("service_type is required", field="service_type", value=service_type)
    if not _SERVICE_TYPE_RE.match(service_type):
        raise ValidationError(
            f"invalid_service_type: {service_type!r} (expected e.g. '_http._tcp')",
            field="service_type",
            value=service_type,
        )
    return service_type


def qualify_service_type(service_type: str) -> str:
    """Fully qualified form used on the wire: ``_http._tcp`` -> ``_http._tcp.local.``"""
    service_type = validate_service_type(service_type)
    if service_type.endswith("."):
        return service_type
    if service_type.endswith("." + LOCAL_DOMAIN.rstrip(".")):
        return service_type + "."
    return f"{service_type}.{LOCAL_DOMAIN}"


def short_service_type(service_type: str) -> str:
    """Inverse of :func:`qualify_service_type`: ``_http._tcp.local.`` -> ``_http._tcp``."""
    suffix = "." + LOCAL_DOMAIN
    if service_type.endswith(suffix):
        return service_type[: -len(suffix)]
    return service_type.rstrip(".")
