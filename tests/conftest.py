"""Shared fixtures."""

import pytest

from dnssd_session.domain.service import ServiceDescriptor
from dnssd_session.infrastructure.event_bus import EventBus
from dnssd_session.session import DiscoverySession
from helpers import EventRecorder, make_descriptor, ScriptedProvider


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(event_bus) -> EventRecorder:
    return EventRecorder(event_bus)


@pytest.fixture
def session(provider, event_bus) -> DiscoverySession:
    return DiscoverySession(provider, event_bus=event_bus)


@pytest.fixture
def descriptor() -> ServiceDescriptor:
    return make_descriptor()
