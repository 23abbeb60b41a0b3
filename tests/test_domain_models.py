"""Tests for domain models."""

import ipaddress

import pytest
from pydantic import ValidationError

from ip_restrict.domain.models import (
    DENY_MESSAGE,
    DENY_TITLE,
    AccessRequest,
    AccessRule,
    AuditEntry,
    Decision,
    ErrorCode,
    GateAction,
    GateSettings,
    IPRestrictError,
    RuleKind,
)


class TestGateAction:
    """Test GateAction enum."""

    def test_values(self):
        """Test enum values."""
        assert GateAction.ALLOW == "allow"
        assert GateAction.DENY == "deny"


class TestIPRestrictError:
    """Test IPRestrictError exception."""

    def test_create_error(self):
        """Test creating an IPRestrictError."""
        error = IPRestrictError(
            code=ErrorCode.INVALID_CONFIGURATION,
            message="Settings file is not a mapping",
            user_message="Access gate settings are invalid",
            context={"path": "settings.yaml"},
        )

        assert error.code == ErrorCode.INVALID_CONFIGURATION
        assert error.user_message == "Access gate settings are invalid"
        assert error.context["path"] == "settings.yaml"
        assert str(error) == "Settings file is not a mapping"

    def test_create_error_no_context(self):
        """Test creating error without context."""
        error = IPRestrictError(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal error",
            user_message="Something went wrong",
        )

        assert error.context == {}


class TestAccessRule:
    """Test AccessRule model."""

    def test_address_rule(self):
        """Test an exact-address rule."""
        rule = AccessRule(kind=RuleKind.ADDRESS, address="198.51.100.7")

        assert rule.token == "198.51.100.7"
        assert str(rule) == "198.51.100.7"
        assert rule.version == 4
        assert rule.network == ipaddress.ip_network("198.51.100.7/32")

    def test_range_rule_keeps_host_bits(self):
        """Test that a range rule keeps the address as written."""
        rule = AccessRule(kind=RuleKind.RANGE, address="203.0.113.5", prefix_length=24)

        assert rule.token == "203.0.113.5/24"
        assert rule.network == ipaddress.ip_network("203.0.113.0/24")

    def test_range_requires_prefix(self):
        """Test that range rules need a prefix length."""
        with pytest.raises(ValidationError):
            AccessRule(kind=RuleKind.RANGE, address="203.0.113.0")

    def test_address_rejects_prefix(self):
        """Test that address rules cannot carry a prefix."""
        with pytest.raises(ValidationError):
            AccessRule(kind=RuleKind.ADDRESS, address="203.0.113.0", prefix_length=24)

    def test_prefix_bounded_by_family(self):
        """Test that IPv4 prefixes stop at 32 bits."""
        with pytest.raises(ValidationError):
            AccessRule(kind=RuleKind.RANGE, address="203.0.113.0", prefix_length=33)

        rule = AccessRule(kind=RuleKind.RANGE, address="2001:db8::", prefix_length=64)
        assert rule.version == 6

    def test_rules_are_immutable(self):
        """Test that rules cannot be edited in place."""
        rule = AccessRule(kind=RuleKind.ADDRESS, address="198.51.100.7")

        with pytest.raises(ValidationError):
            rule.address = "198.51.100.8"

    def test_matches_other_family(self):
        """Test that rules never match the other address family."""
        rule = AccessRule(kind=RuleKind.RANGE, address="8.8.8.8", prefix_length=0)

        assert rule.matches(ipaddress.ip_address("1.1.1.1"))
        assert not rule.matches(ipaddress.ip_address("2001:db8::1"))


class TestDecision:
    """Test Decision model."""

    def test_allow_decision(self):
        """Test allow decisions carry no rejection."""
        decision = Decision(action=GateAction.ALLOW, reason="ok")

        assert decision.allowed
        assert decision.status_code is None
        assert decision.message is None
        assert decision.title is None

    def test_deny_decision(self):
        """Test deny decisions carry the forbidden response."""
        decision = Decision(action="deny", reason="Address not on allow list")

        assert not decision.allowed
        assert decision.status_code == 403
        assert decision.message == DENY_MESSAGE
        assert decision.title == DENY_TITLE


class TestAccessRequestAndSettings:
    """Test request and settings snapshots."""

    def test_request_defaults(self):
        """Test generated request metadata."""
        request = AccessRequest(remote_addr="203.0.113.1")

        assert request.path is None
        assert request.request_id
        assert request.timestamp is not None

    def test_settings_defaults(self):
        """Test that missing settings mean a disabled gate."""
        settings = GateSettings()

        assert settings.enabled is False
        assert settings.allow_list == []

    def test_audit_entry(self):
        """Test audit entry creation."""
        request = AccessRequest(remote_addr="203.0.113.1")
        decision = Decision(action=GateAction.DENY, reason="nope")
        entry = AuditEntry(request=request, decision=decision)

        assert entry.id
        assert entry.decision.action == GateAction.DENY
