"""Domain models and business logic for IP Restrict.

This module contains the address validator, the access decision engine and
the gate service that ties them to the stored settings.
"""

from .models import (
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
from .address_validator import AddressValidator
from .access_policy import (
    AccessPolicyEngine,
    BypassPredicate,
    EnabledOverride,
    RequiredRulesSupplier,
)
from .repositories import SettingsRepository
from .services import AccessGateService

__all__ = [
    "AccessRequest",
    "AccessRule",
    "AuditEntry",
    "Decision",
    "ErrorCode",
    "GateAction",
    "GateSettings",
    "IPRestrictError",
    "RuleKind",
    "AddressValidator",
    "AccessPolicyEngine",
    "BypassPredicate",
    "EnabledOverride",
    "RequiredRulesSupplier",
    "SettingsRepository",
    "AccessGateService",
]
