"""IP Restrict - allow-list access gate for administrative endpoints.

This package decides whether a requester address may reach a protected
interface, based on an operator-maintained allow list of addresses and CIDR
ranges plus entries supplied by trusted extensions.
"""

__version__ = "1.0.1"

from .domain.address_validator import AddressValidator, validate
from .domain.access_policy import AccessPolicyEngine, is_allowed
from .domain.models import (
    AccessRequest,
    AccessRule,
    Decision,
    ErrorCode,
    GateAction,
    GateSettings,
    IPRestrictError,
    RuleKind,
)
from .domain.services import AccessGateService

__all__ = [
    "__version__",
    "AccessGateService",
    "AccessPolicyEngine",
    "AccessRequest",
    "AccessRule",
    "AddressValidator",
    "Decision",
    "ErrorCode",
    "GateAction",
    "GateSettings",
    "IPRestrictError",
    "RuleKind",
    "is_allowed",
    "validate",
]
