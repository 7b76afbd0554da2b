"""Domain model - the three controllers composed by the discovery session."""

from .discovery import DiscoveryController
from .known_services import KnownServices
from .registration import RegistrationController
from .resolver import Resolver

__all__ = [
    "DiscoveryController",
    "KnownServices",
    "RegistrationController",
    "Resolver",
]
