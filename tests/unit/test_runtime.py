"""Tests for runtime wiring."""

from unittest.mock import Mock, patch

from dnssd_session.application.event_handlers import LoggingEventHandler
from dnssd_session.bootstrap.runtime import create_runtime, create_sink
from dnssd_session.config import SessionConfig
from dnssd_session.infrastructure.event_bus import EventBus
from dnssd_session.infrastructure.notification_sinks import ImmediateNotificationSink, ThreadNotificationSink
from dnssd_session.infrastructure.zeroconf_provider import ZeroconfDiscoveryProvider
from helpers import ScriptedProvider


class TestCreateSink:
    """Tests for create_sink."""

    def test_immediate(self):
        assert isinstance(create_sink(SessionConfig()), ImmediateNotificationSink)

    def test_thread(self):
        sink = create_sink(SessionConfig(notification_mode="thread"))
        try:
            assert isinstance(sink, ThreadNotificationSink)
            assert sink.running
        finally:
            sink.close()


class TestCreateRuntime:
    """Tests for create_runtime."""

    def test_wires_session(self):
        provider = ScriptedProvider()
        bus = EventBus()

        runtime = create_runtime(config=SessionConfig(exclude_own_service=True), provider=provider, event_bus=bus)

        assert runtime.session.provider is provider
        assert runtime.session.event_bus is bus
        assert runtime.session.exclude_own_service is True
        assert runtime.event_bus is bus

    def test_logging_handler_subscribed(self):
        bus = Mock(spec=EventBus)

        create_runtime(config=SessionConfig(), provider=ScriptedProvider(), event_bus=bus)

        handler = bus.subscribe_to_all.call_args.args[0]
        assert isinstance(handler, LoggingEventHandler)

    def test_logging_handler_optional(self):
        bus = Mock(spec=EventBus)

        create_runtime(config=SessionConfig(log_events=False), provider=ScriptedProvider(), event_bus=bus)

        bus.subscribe_to_all.assert_not_called()

    def test_config_from_env(self):
        runtime = create_runtime(provider=ScriptedProvider(), env={"DNSSD_EXCLUDE_OWN_SERVICE": "true"})

        assert runtime.config.exclude_own_service is True

    def test_default_provider_is_zeroconf(self):
        with patch("dnssd_session.infrastructure.zeroconf_provider.Zeroconf"):
            runtime = create_runtime(config=SessionConfig(resolve_timeout_ms=1234))
            try:
                assert isinstance(runtime.provider, ZeroconfDiscoveryProvider)
            finally:
                runtime.close()

    def test_close_order(self):
        provider = ScriptedProvider()
        sink = Mock()
        runtime = create_runtime(config=SessionConfig(), provider=provider, sink=sink)

        runtime.close()

        assert runtime.session.closed
        assert provider.closed
        sink.close.assert_called_once()
