"""Tests for value objects, service values and exceptions."""

import pytest

from dnssd_session.domain.exceptions import DnssdSessionError, ProviderError, SessionClosedError, ValidationError
from dnssd_session.domain.service import ResolvedService, ServiceDescriptor, ServiceReference
from dnssd_session.domain.value_objects import (
    describe_error,
    DiscoveryState,
    ErrorKind,
    ProviderErrorCode,
    qualify_service_type,
    RegistrationState,
    short_service_type,
    validate_service_type,
)


class TestStates:
    """Tests for the lifecycle state enums."""

    def test_registration_state_values(self):
        assert RegistrationState.IDLE.value == "idle"
        assert RegistrationState.REGISTERING.value == "registering"
        assert str(RegistrationState.REGISTERED) == "registered"

    def test_discovery_state_values(self):
        assert DiscoveryState.IDLE == "idle"
        assert DiscoveryState.STARTING == "starting"
        assert str(DiscoveryState.ACTIVE) == "active"

    def test_error_kind_values(self):
        """Error kinds keep their numeric values."""
        assert ErrorKind.REGISTRATION_FAILED == 1
        assert ErrorKind.UNREGISTRATION_FAILED == 2
        assert ErrorKind.START_DISCOVERY_FAILED == 3
        assert ErrorKind.STOP_DISCOVERY_FAILED == 4
        assert ErrorKind.RESOLVE_FAILED == 5


class TestDescribeError:
    """Tests for describe_error."""

    def test_known_codes(self):
        assert describe_error(ProviderErrorCode.ALREADY_ACTIVE) == "The operation failed because it is already active."
        assert describe_error(0) == "Internal error."
        assert describe_error(4) == (
            "The operation failed because the maximum outstanding requests from the applications have reached."
        )

    @pytest.mark.parametrize("code", [1, 2, 99, -1])
    def test_unknown_codes(self, code):
        assert describe_error(code) == "Unknown error."


class TestServiceType:
    """Tests for service type validation and qualification."""

    @pytest.mark.parametrize("service_type", ["_http._tcp", "_myproto._udp", "_ipp._tcp.local.", "_ipp._tcp.local"])
    def test_valid_types(self, service_type):
        assert validate_service_type(service_type) == service_type

    @pytest.mark.parametrize("service_type", ["http._tcp", "_http", "_http._sctp", "_._tcp", "_http tcp"])
    def test_invalid_types(self, service_type):
        with pytest.raises(ValidationError, match="invalid_service_type"):
            validate_service_type(service_type)

    @pytest.mark.parametrize("service_type", ["", None])
    def test_missing_type(self, service_type):
        with pytest.raises(ValidationError, match="service_type is required"):
            validate_service_type(service_type)

    def test_qualify(self):
        assert qualify_service_type("_http._tcp") == "_http._tcp.local."
        assert qualify_service_type("_http._tcp.local") == "_http._tcp.local."
        assert qualify_service_type("_http._tcp.local.") == "_http._tcp.local."

    def test_short(self):
        assert short_service_type("_http._tcp.local.") == "_http._tcp"
        assert short_service_type("_http._tcp") == "_http._tcp"


class TestServiceDescriptor:
    """Tests for ServiceDescriptor."""

    def test_create_keeps_attribute_order(self):
        descriptor = ServiceDescriptor.create("Foo", "_myproto._tcp", 9000, {"b": "2", "a": "1"})

        assert list(descriptor.attributes) == ["b", "a"]
        assert descriptor.to_dict() == {
            "name": "Foo",
            "service_type": "_myproto._tcp",
            "port": 9000,
            "attributes": {"b": "2", "a": "1"},
        }

    def test_attributes_are_read_only(self):
        descriptor = ServiceDescriptor.create("Foo", "_myproto._tcp", 9000, {"k": "v"})

        with pytest.raises(TypeError):
            descriptor.attributes["k"] = "changed"

        assert descriptor.attributes == {"k": "v"}

    def test_caller_mapping_is_copied(self):
        """Changing the mapping passed in should not change the descriptor."""
        source = {"k": "v"}
        descriptor = ServiceDescriptor("Foo", "_myproto._tcp", 9000, attributes=source)
        source["k"] = "changed"

        assert descriptor.attributes == {"k": "v"}
        assert descriptor.to_dict()["attributes"] == {"k": "v"}

    def test_constructor_validates_attributes(self):
        with pytest.raises(ValidationError):
            ServiceDescriptor("Foo", "_myproto._tcp", 9000, attributes={"": "v"})

    def test_constructor_and_create_agree(self):
        assert ServiceDescriptor("Foo", "_myproto._tcp", 9000) == ServiceDescriptor.create("Foo", "_myproto._tcp", 9000)
        assert hash(ServiceDescriptor("Foo", "_myproto._tcp", 9000, attributes={"k": "v"}))

    def test_none_attribute_value_becomes_empty(self):
        descriptor = ServiceDescriptor.create("Foo", "_myproto._tcp", 9000, {"flag": None})

        assert descriptor.attributes == {"flag": ""}

    def test_equal_descriptors(self):
        a = ServiceDescriptor.create("Foo", "_myproto._tcp", 9000, {"k": "v"})
        b = ServiceDescriptor.create("Foo", "_myproto._tcp", 9000, {"k": "v"})

        assert a == b

    def test_requires_name(self):
        with pytest.raises(ValidationError, match="service name is required"):
            ServiceDescriptor.create("", "_myproto._tcp", 9000)

    def test_rejects_bad_type(self):
        with pytest.raises(ValidationError):
            ServiceDescriptor.create("Foo", "myproto", 9000)

    @pytest.mark.parametrize("port", [-1, 65536, True, "80"])
    def test_rejects_bad_port(self, port):
        with pytest.raises(ValidationError, match="invalid_port"):
            ServiceDescriptor.create("Foo", "_myproto._tcp", port)

    def test_rejects_empty_attribute_key(self):
        with pytest.raises(ValidationError):
            ServiceDescriptor.create("Foo", "_myproto._tcp", 9000, {"": "x"})


class TestReferences:
    """Tests for ServiceReference and ResolvedService."""

    def test_same_service_compares_names(self):
        a = ServiceReference(name="printer1", service_type="_ipp._tcp")
        b = ServiceReference(name="printer1", service_type="_ipp._tcp.local.")

        assert a.same_service(b)
        assert not a.same_service(ServiceReference(name="printer2", service_type="_ipp._tcp"))

    def test_resolved_service(self):
        service = ResolvedService.create("printer1", "_ipp._tcp", "192.168.1.20", 631, {"rp": "ipp/print"})

        assert service.reference == ServiceReference(name="printer1", service_type="_ipp._tcp")
        assert service.to_dict()["attributes"] == {"rp": "ipp/print"}
        assert service.to_dict()["host"] == "192.168.1.20"

    def test_resolved_service_constructor_freezes_attributes(self):
        service = ResolvedService("printer1", "_ipp._tcp", "192.168.1.20", 631, attributes={"rp": None})

        assert service.attributes == {"rp": ""}
        with pytest.raises(TypeError):
            service.attributes["rp"] = "x"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_validation_error_details(self):
        error = ValidationError("bad", field="port", value=-1)

        assert isinstance(error, DnssdSessionError)
        assert error.to_dict() == {
            "error": "ValidationError",
            "message": "bad",
            "details": {"field": "port", "value": -1},
        }

    def test_provider_error_carries_code(self):
        error = ProviderError("boom", ProviderErrorCode.MAX_LIMIT)

        assert error.code == 4
        assert error.details == {"code": 4}

    def test_session_closed_error(self):
        assert str(SessionClosedError()) == "session_closed"
