"""Domain services for the IP Restrict access gate."""

from collections.abc import Sequence
from typing import Any

import structlog

from ..infrastructure.error_handler import AuditLogger, ErrorHandler
from .access_policy import (
    AccessPolicyEngine,
    BypassPredicate,
    EnabledOverride,
    RequiredRulesSupplier,
)
from .models import AccessRequest, AccessRule, Decision
from .repositories import SettingsRepository


class AccessGateService:
    """High-level service gating requests against the stored allow list."""

    def __init__(
        self,
        repository: SettingsRepository,
        engine: AccessPolicyEngine | None = None,
        required_rules_supplier: RequiredRulesSupplier | None = None,
        enabled_override: EnabledOverride | None = None,
        bypass_predicates: Sequence[BypassPredicate] = (),
        error_handler: ErrorHandler | None = None,
        audit_logger: AuditLogger | None = None,
    ):
        self.repository = repository
        self.engine = engine or AccessPolicyEngine()
        self.required_rules_supplier = required_rules_supplier
        self.enabled_override = enabled_override
        self.bypass_predicates = list(bypass_predicates)
        self.error_handler = error_handler or ErrorHandler()
        self.audit_logger = audit_logger or AuditLogger()
        self.logger = structlog.get_logger(__name__)

    def check_access(self, remote_addr: str | None, path: str | None = None) -> Decision:
        """Evaluate one request against a fresh settings snapshot.

        Args:
            remote_addr: Requester address as reported by the transport
            path: Requested path, for the audit trail only

        Returns:
            Allow or deny decision; any failure denies
        """
        request = AccessRequest(remote_addr=remote_addr, path=path)

        try:
            decision = self.engine.check_access(
                request,
                self.repository.load(),
                required_rules_supplier=self.required_rules_supplier,
                enabled_override=self.enabled_override,
                bypass_predicates=self.bypass_predicates,
            )
        except Exception as e:
            decision = self.error_handler.handle_error(e, request)

        self.audit_logger.log_decision(request, decision)
        return decision

    def required_rules(self) -> list[AccessRule]:
        """Current required list, as the settings page displays it."""
        return self.engine.required_rules(self.required_rules_supplier)

    def save_allow_list(self, text: str) -> list[AccessRule]:
        """Store newline-separated form input, keeping only valid entries."""
        rules = self.engine.validator.parse_list(text)
        self.repository.save_allow_list(rule.token for rule in rules)
        self.logger.info("Allow list saved", entries=len(rules))
        return rules

    def allow_list_text(self) -> str:
        """Stored allow list, one canonical entry per line."""
        settings = self.repository.load()
        return self.engine.validator.render_list(
            self.engine.validator.sanitize(settings.allow_list)
        )

    def set_enabled(self, enabled: bool) -> None:
        self.repository.set_enabled(enabled)
        self.logger.info("Access restriction toggled", enabled=enabled)

    def enabled_locked(self) -> bool:
        """Whether the deployment forces the enabled flag."""
        if self.enabled_override is None:
            return False
        return self.enabled_override(None) is not None

    def health_check(self) -> dict[str, Any]:
        """Check the health of the access gate.

        Returns:
            Health status information
        """
        try:
            settings = self.repository.load()
            enabled = self.engine.effective_enabled(
                settings.enabled, self.enabled_override
            )
        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
                "service": "AccessGateService",
            }

        operator_rules = self.engine.validator.sanitize(settings.allow_list)
        return {
            "status": "healthy" if operator_rules or not enabled else "degraded",
            "enabled": enabled,
            "enabled_locked": self.enabled_locked(),
            "operator_rules": len(operator_rules),
            "service": "AccessGateService",
        }
