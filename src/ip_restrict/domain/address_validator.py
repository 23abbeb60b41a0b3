"""Address normalization and validation for allow-list entries."""

import ipaddress
import re
from collections.abc import Iterable

import structlog

from .models import AccessRule, IPAddress, RuleKind

_PREFIX_RE = re.compile(r"[0-9]+", re.ASCII)

# Private-use and reserved blocks are never accepted as rules or requesters.
# Documentation networks stay routable for our purposes.
BLOCKED_NETWORKS: dict[str, list[ipaddress.IPv4Network | ipaddress.IPv6Network]] = {
    "private": [
        ipaddress.ip_network("10.0.0.0/8"),
        ipaddress.ip_network("172.16.0.0/12"),
        ipaddress.ip_network("192.168.0.0/16"),
        ipaddress.ip_network("fc00::/7"),
    ],
    "reserved": [
        ipaddress.ip_network("0.0.0.0/8"),
        ipaddress.ip_network("127.0.0.0/8"),
        ipaddress.ip_network("169.254.0.0/16"),
        ipaddress.ip_network("240.0.0.0/4"),
        ipaddress.ip_network("::/128"),
        ipaddress.ip_network("::1/128"),
        ipaddress.ip_network("::ffff:0:0/96"),
        ipaddress.ip_network("fe80::/10"),
    ],
}


class AddressValidator:
    """Parses raw allow-list text into canonical rules.

    Invalid entries are reported as ``None`` and logged; nothing here raises
    for malformed input.
    """

    def __init__(self) -> None:
        self.logger = structlog.get_logger(__name__)

    @staticmethod
    def clean(token: str) -> str:
        """Trim whitespace and stray list separators around an entry."""
        return token.strip().strip(",").strip()

    def parse_address(self, text: str) -> tuple[IPAddress | None, str | None]:
        """Parse a bare address, returning it or the reason it was refused."""
        try:
            address = ipaddress.ip_address(text)
        except ValueError:
            return None, "not an IP address"

        if getattr(address, "scope_id", None):
            return None, "scoped address"

        for category, networks in BLOCKED_NETWORKS.items():
            if any(address in network for network in networks):
                return None, f"{category} address"

        return address, None

    def validate(self, token: str) -> AccessRule | None:
        """Validate one entry, returning an address or range rule.

        Args:
            token: Raw entry such as ``"203.0.113.0/24"`` or ``" 198.51.100.7,"``

        Returns:
            The canonical rule, or None if the entry is unusable
        """
        if not isinstance(token, str):
            self.logger.debug("Rejected allow-list entry", token=repr(token), reason="not text")
            return None

        cleaned = self.clean(token)
        if not cleaned:
            return None

        if "/" in cleaned:
            address_part, prefix_part = cleaned.split("/", 1)
            address, reason = self.parse_address(address_part.strip())
            if address is None:
                return self._reject(cleaned, reason)

            prefix_part = prefix_part.strip()
            if not _PREFIX_RE.fullmatch(prefix_part):
                return self._reject(cleaned, "prefix is not a non-negative integer")

            prefix_length = int(prefix_part)
            if prefix_length > address.max_prefixlen:
                return self._reject(
                    cleaned, f"prefix exceeds {address.max_prefixlen} bits"
                )

            return AccessRule(
                kind=RuleKind.RANGE,
                address=str(address),
                prefix_length=prefix_length,
            )

        address, reason = self.parse_address(cleaned)
        if address is None:
            return self._reject(cleaned, reason)
        return AccessRule(kind=RuleKind.ADDRESS, address=str(address))

    def _reject(self, token: str, reason: str | None) -> None:
        self.logger.debug("Rejected allow-list entry", token=token, reason=reason)
        return None

    def sanitize(self, entries: Iterable[str] | None) -> list[AccessRule]:
        """Validate a batch of entries, dropping the ones that fail."""
        rules: list[AccessRule] = []
        for entry in entries or []:
            rule = self.validate(entry)
            if rule is not None:
                rules.append(rule)
            elif isinstance(entry, str) and self.clean(entry):
                self.logger.warning(
                    "Dropped invalid allow-list entry", token=self.clean(entry)
                )
        return rules

    def parse_list(self, text: str) -> list[AccessRule]:
        """Parse newline-separated form input into rules."""
        return self.sanitize(text.splitlines())

    @staticmethod
    def render_list(rules: Iterable[AccessRule]) -> str:
        """Render rules one per line, as shown in the settings form."""
        return "\n".join(rule.token for rule in rules)

    def resolve_requester(self, raw: str | None) -> IPAddress | None:
        """Validate a transport-supplied requester address.

        Only a bare, routable address qualifies. Anything else yields None so
        the gate fails closed.
        """
        if raw is None:
            return None

        rule = self.validate(raw)
        if rule is None or rule.kind != RuleKind.ADDRESS:
            self.logger.debug("Unresolvable requester address", remote_addr=raw)
            return None
        return rule.ip


_default_validator = AddressValidator()


def validate(token: str) -> AccessRule | None:
    """Validate one allow-list entry with the shared validator."""
    return _default_validator.validate(token)


def sanitize(entries: Iterable[str] | None) -> list[AccessRule]:
    return _default_validator.sanitize(entries)


def resolve_requester(raw: str | None) -> IPAddress | None:
    return _default_validator.resolve_requester(raw)
