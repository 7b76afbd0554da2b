"""Service descriptors and references."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .exceptions import ValidationError
from .value_objects import validate_service_type


def _freeze_attributes(attributes: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """Validate ``attributes`` and return a read-only copy in insertion order."""
    frozen: Dict[str, str] = {}
    for key, value in (attributes or {}).items():
        if not isinstance(key, str) or not key:
            raise ValidationError("attribute keys must be non-empty strings", field="attributes", value=key)
        frozen[key] = "" if value is None else str(value)
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class ServiceDescriptor:
    """A service to advertise on the local network.

    Attributes keep their insertion order and are read-only. The descriptor
    is immutable: to change what is advertised, register a new descriptor.
    """

    name: str
    service_type: str
    port: int
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise ValidationError("service name is required", field="name", value=self.name)
        validate_service_type(self.service_type)
        if not isinstance(self.port, int) or isinstance(self.port, bool) or not 0 <= self.port <= 65535:
            raise ValidationError(f"invalid_port: {self.port!r}", field="port", value=self.port)
        object.__setattr__(self, "attributes", _freeze_attributes(self.attributes))

    @classmethod
    def create(
        cls,
        name: str,
        service_type: str,
        port: int,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> "ServiceDescriptor":
        """Build a descriptor; ``attributes`` may be None."""
        return cls(name=name, service_type=service_type, port=port, attributes=attributes or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "service_type": self.service_type,
            "port": self.port,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True)
class ServiceReference:
    """A discovered peer service that has not been resolved yet.

    Two references denote the same peer when their names match; that is the
    identity used by the known-services collection.
    """

    name: str
    service_type: str

    def same_service(self, other: "ServiceReference") -> bool:
        return self.name == other.name

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "service_type": self.service_type}


@dataclass(frozen=True)
class ResolvedService:
    """Connectable details for a peer, produced by resolving a reference."""

    name: str
    service_type: str
    host: str
    port: int
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _freeze_attributes(self.attributes))

    @classmethod
    def create(
        cls,
        name: str,
        service_type: str,
        host: str,
        port: int,
        attributes: Optional[Mapping[str, str]] = None,
    ) -> "ResolvedService":
        return cls(name=name, service_type=service_type, host=host, port=port, attributes=attributes or {})

    @property
    def reference(self) -> ServiceReference:
        """The unresolved reference this service was resolved from."""
        return ServiceReference(name=self.name, service_type=self.service_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "service_type": self.service_type,
            "host": self.host,
            "port": self.port,
            "attributes": dict(self.attributes),
        }
