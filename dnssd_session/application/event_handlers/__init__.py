"""Event handlers reacting to session domain events."""

from .logging_handler import LoggingEventHandler

__all__ = ["LoggingEventHandler"]
