"""Contract for the execution context that delivers notifications."""

from abc import ABC, abstractmethod
from typing import Callable


class NotificationSink(ABC):
    """Runs notification callbacks where the host application expects them.

    Implementations must run submitted callables in submission order.
    ``submit`` must not block on the callable itself unless the sink runs it
    inline.
    """

    @abstractmethod
    def submit(self, notification: Callable[[], None]) -> None:
        """Schedule ``notification`` to run after every earlier submission."""

    def close(self) -> None:
        """Stop accepting notifications. Optional."""
