"""Access decision engine: allow-list membership and gating."""

import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import structlog

from .address_validator import AddressValidator
from .models import (
    AccessRequest,
    AccessRule,
    Decision,
    ErrorCode,
    GateAction,
    GateSettings,
    IPAddress,
    IPRestrictError,
)

RequiredRulesSupplier = Callable[[], Iterable[str] | None]
EnabledOverride = Callable[[bool | None], bool | None]
BypassPredicate = Callable[[], bool]


class AccessPolicyEngine:
    """Stateless allow-list evaluation.

    Every call works only on its arguments, so one engine can serve
    concurrent requests.
    """

    def __init__(self, validator: AddressValidator | None = None):
        self.validator = validator or AddressValidator()
        self.logger = structlog.get_logger(__name__)

    def _coerce_requester(self, requester: IPAddress | str | None) -> IPAddress | None:
        if requester is None:
            return None
        return self.validator.resolve_requester(str(requester))

    def find_matching_rule(
        self, requester: IPAddress | str | None, rules: Iterable[AccessRule]
    ) -> AccessRule | None:
        """Return the first rule covering the requester, if any."""
        address = self._coerce_requester(requester)
        if address is None:
            return None

        for rule in rules:
            if rule.matches(address):
                return rule
        return None

    @staticmethod
    def _call_extension(name: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run an injected collaborator, reporting its failure as an extension error."""
        try:
            return func(*args)
        except Exception as e:
            raise IPRestrictError(
                ErrorCode.EXTENSION_FAILED,
                f"{name} raised {type(e).__name__}: {e}",
                "Access gate extension failed",
                context={"extension": name},
            ) from e

    def is_allowed(
        self, requester: IPAddress | str | None, rules: Iterable[AccessRule]
    ) -> bool:
        """Check whether the requester is covered by any rule.

        An unresolvable requester is never allowed.
        """
        return self.find_matching_rule(requester, rules) is not None

    def required_rules(
        self, supplier: RequiredRulesSupplier | None
    ) -> list[AccessRule]:
        """Fetch and sanitize the required list. Called on every decision."""
        if supplier is None:
            return []
        return self.validator.sanitize(
            self._call_extension("required_rules_supplier", supplier) or []
        )

    def effective_enabled(
        self, stored: bool, override: EnabledOverride | None = None
    ) -> bool:
        if override is None:
            return stored
        forced = self._call_extension("enabled_override", override, stored)
        return stored if forced is None else bool(forced)

    def check_access(
        self,
        request: AccessRequest,
        settings: GateSettings,
        required_rules_supplier: RequiredRulesSupplier | None = None,
        enabled_override: EnabledOverride | None = None,
        bypass_predicates: Sequence[BypassPredicate] = (),
    ) -> Decision:
        """Decide whether a request may proceed.

        Args:
            request: The incoming request (remote address already resolved)
            settings: Fresh snapshot of the stored gate configuration
            required_rules_supplier: Source of always-allowed entries
            enabled_override: Deployment override of the stored enabled flag
            bypass_predicates: Trusted-request checks that skip the allow list

        Returns:
            Allow or deny decision
        """
        start_time = time.perf_counter()

        required = self.required_rules(required_rules_supplier)

        if not self.effective_enabled(settings.enabled, enabled_override):
            return self._decision(
                GateAction.ALLOW, "Access restriction disabled", request, start_time
            )

        if any(
            self._call_extension("bypass_predicate", predicate)
            for predicate in bypass_predicates
        ):
            return self._decision(
                GateAction.ALLOW, "Trusted request bypass", request, start_time
            )

        rules = self.validator.sanitize(settings.allow_list) + required
        matched = self.find_matching_rule(request.remote_addr, rules)
        if matched is None:
            self.logger.info(
                "Requester not on allow list",
                remote_addr=request.remote_addr,
                path=request.path,
                rules_checked=len(rules),
            )
            return self._decision(
                GateAction.DENY, "Address not on allow list", request, start_time
            )

        return self._decision(
            GateAction.ALLOW,
            f"Address matched rule {matched.token}",
            request,
            start_time,
            matched_rule=matched.token,
        )

    @staticmethod
    def _decision(
        action: GateAction,
        reason: str,
        request: AccessRequest,
        start_time: float,
        matched_rule: str | None = None,
    ) -> Decision:
        return Decision(
            action=action,
            reason=reason,
            matched_rule=matched_rule,
            requester=request.remote_addr,
            processing_time_ms=int((time.perf_counter() - start_time) * 1000),
        )


_default_engine = AccessPolicyEngine()


def is_allowed(requester: IPAddress | str | None, rules: Iterable[AccessRule]) -> bool:
    """Allow-list membership test with the shared engine."""
    return _default_engine.is_allowed(requester, rules)
