"""Bootstrap helpers for wiring runtime dependencies.

This module centralizes object graph creation (composition root helpers) so
that the rest of the codebase can avoid module-level singletons and implicit
globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..application.event_handlers import LoggingEventHandler
from ..config import load_config, SessionConfig
from ..domain.contracts import DiscoveryProvider, NotificationSink
from ..infrastructure.event_bus import EventBus
from ..infrastructure.notification_sinks import ImmediateNotificationSink, ThreadNotificationSink
from ..infrastructure.zeroconf_provider import ZeroconfDiscoveryProvider
from ..session import DiscoverySession


@dataclass(frozen=True)
class Runtime:
    """Container for runtime dependencies."""

    config: SessionConfig
    event_bus: EventBus
    sink: NotificationSink
    provider: DiscoveryProvider
    session: DiscoverySession

    def close(self) -> None:
        """Close session, provider and sink, in that order."""
        try:
            self.session.close()
        finally:
            try:
                self.provider.close()
            finally:
                self.sink.close()


def create_sink(config: SessionConfig) -> NotificationSink:
    if config.notification_mode == "thread":
        return ThreadNotificationSink()
    return ImmediateNotificationSink()


def create_runtime(
    *,
    config: Optional[SessionConfig] = None,
    provider: Optional[DiscoveryProvider] = None,
    event_bus: Optional[EventBus] = None,
    sink: Optional[NotificationSink] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Runtime:
    """Create runtime dependencies explicitly.

    Args:
        config: Session configuration (loaded from the environment if omitted).
        provider: Optional provider override (useful for tests).
        event_bus: Optional event bus override.
        sink: Optional notification sink override.
        env: Optional environment mapping used when config is omitted.

    Returns:
        Runtime container.
    """
    config = config or load_config(env=env)

    eb = event_bus or EventBus()
    if config.log_events:
        eb.subscribe_to_all(LoggingEventHandler())

    notification_sink = sink or create_sink(config)
    discovery_provider = provider or ZeroconfDiscoveryProvider(
        ip_version=config.ip_version,
        resolve_timeout_ms=config.resolve_timeout_ms,
    )

    session = DiscoverySession(
        discovery_provider,
        event_bus=eb,
        sink=notification_sink,
        exclude_own_service=config.exclude_own_service,
    )

    return Runtime(
        config=config,
        event_bus=eb,
        sink=notification_sink,
        provider=discovery_provider,
        session=session,
    )
