"""Domain models for the IP Restrict access gate."""

import ipaddress
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

DENY_STATUS_CODE = 403
DENY_TITLE = "Not allowed"
DENY_MESSAGE = "Sorry, you are not allowed to access this page."


class RuleKind(str, Enum):
    """Kinds of allow rules."""

    ADDRESS = "address"
    RANGE = "range"


class GateAction(str, Enum):
    """Outcomes of an access check."""

    ALLOW = "allow"
    DENY = "deny"


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    INVALID_CONFIGURATION = "CONFIG_001"
    SETTINGS_UNAVAILABLE = "SETTINGS_001"
    EXTENSION_FAILED = "EXT_001"
    INTERNAL_ERROR = "INTERNAL_001"


class IPRestrictError(Exception):
    """Base exception with user-friendly messages."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        user_message: str,
        context: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.user_message = user_message
        self.context = context or {}
        super().__init__(message)


class AccessRule(BaseModel):
    """A validated allow rule: a single address or a CIDR range.

    Instances are only built by the address validator, which guarantees that
    ``address`` is canonical and ``prefix_length`` fits the address family.
    """

    kind: RuleKind
    address: str
    prefix_length: int | None = Field(default=None, ge=0, le=128)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_prefix(self) -> "AccessRule":
        """Keep kind and prefix length consistent."""
        if self.kind == RuleKind.RANGE:
            if self.prefix_length is None:
                raise ValueError("Range rules require a prefix length")
            if self.prefix_length > self.ip.max_prefixlen:
                raise ValueError(
                    f"Prefix /{self.prefix_length} exceeds IPv{self.ip.version} width"
                )
        elif self.prefix_length is not None:
            raise ValueError("Address rules cannot carry a prefix length")
        return self

    @property
    def ip(self) -> IPAddress:
        return ipaddress.ip_address(self.address)

    @property
    def network(self) -> IPNetwork:
        """CIDR block covered by this rule (a single host for address rules)."""
        if self.kind == RuleKind.RANGE:
            return ipaddress.ip_network(self.token, strict=False)
        return ipaddress.ip_network(self.address)

    @property
    def version(self) -> int:
        return self.ip.version

    @property
    def token(self) -> str:
        """Canonical text form, as stored in the allow list."""
        if self.kind == RuleKind.RANGE:
            return f"{self.address}/{self.prefix_length}"
        return self.address

    def matches(self, address: IPAddress) -> bool:
        """Check an address against this rule.

        Ranges compare the masked addresses; plain addresses compare for
        equality. Addresses of the other family never match.
        """
        if address.version != self.version:
            return False
        if self.kind == RuleKind.RANGE:
            return address in self.network
        return address == self.ip

    def __str__(self) -> str:
        return self.token


class GateSettings(BaseModel):
    """Snapshot of the stored gate configuration for a single decision."""

    enabled: bool = False
    allow_list: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class AccessRequest(BaseModel):
    """Per-request input to the access gate."""

    remote_addr: str | None = None
    path: str | None = None
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Decision(BaseModel):
    """Outcome of an access check"""

    action: GateAction
    reason: str
    matched_rule: str | None = None
    requester: str | None = None
    processing_time_ms: int = 0

    @property
    def allowed(self) -> bool:
        return self.action == GateAction.ALLOW

    @property
    def status_code(self) -> int | None:
        """HTTP status the caller should answer with, if it must reject."""
        return None if self.allowed else DENY_STATUS_CODE

    @property
    def message(self) -> str | None:
        return None if self.allowed else DENY_MESSAGE

    @property
    def title(self) -> str | None:
        return None if self.allowed else DENY_TITLE


class AuditEntry(BaseModel):
    """Audit trail entry for an access decision"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    request: AccessRequest
    decision: Decision
