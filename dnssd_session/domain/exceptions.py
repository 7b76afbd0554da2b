"""Domain exceptions.

Provider failures are not raised: they are reported as ``OperationFailed``
events. The exceptions here cover programming errors and configuration.
"""

from typing import Any, Dict, Optional


class DnssdSessionError(Exception):
    """Base class for all dnssd-session errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DnssdSessionError):
    """An argument violates a precondition (missing descriptor, bad type, ...)."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {}
        if field is not None:
            details["field"] = field
            details["value"] = value
        super().__init__(message, details)
        self.field = field


class ConfigurationError(DnssdSessionError):
    """Configuration could not be loaded or contains invalid values."""


class ProviderError(DnssdSessionError):
    """A discovery provider operation failed with an opaque status code."""

    def __init__(self, message: str, code: int):
        super().__init__(message, {"code": code})
        self.code = code


class SessionClosedError(DnssdSessionError):
    """The session was closed and no longer accepts operations."""

    def __init__(self):
        super().__init__("session_closed")
