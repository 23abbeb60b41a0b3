"""Error handling and audit logging infrastructure for IP Restrict."""

import threading
import time
from collections import deque
from typing import Any

import structlog

from ..domain.models import (
    AccessRequest,
    AuditEntry,
    Decision,
    ErrorCode,
    GateAction,
    IPRestrictError,
)


class ErrorHandler:
    """Centralized error handling with structured logging.

    Every failure during an access check becomes a deny decision.
    """

    def __init__(self) -> None:
        self.logger = structlog.get_logger(__name__)

    def handle_error(self, error: Exception, request: AccessRequest) -> Decision:
        """Convert exceptions to access decisions"""
        start_time = time.perf_counter()
        processing_time = int((time.perf_counter() - start_time) * 1000)

        if isinstance(error, IPRestrictError):
            return self._handle_ip_restrict_error(error, request, processing_time)
        return self._handle_unexpected_error(error, request, processing_time)

    def _handle_ip_restrict_error(
        self, error: IPRestrictError, request: AccessRequest, processing_time: int
    ) -> Decision:
        self.logger.error(
            "Access check failed",
            error_code=error.code.value,
            error_message=error.message,
            user_message=error.user_message,
            context=error.context,
            remote_addr=request.remote_addr,
            path=request.path,
        )

        return Decision(
            action=GateAction.DENY,
            reason=error.user_message,
            requester=request.remote_addr,
            processing_time_ms=processing_time,
        )

    def _handle_unexpected_error(
        self, error: Exception, request: AccessRequest, processing_time: int
    ) -> Decision:
        self.logger.error(
            "Unexpected error during access check",
            error_code=ErrorCode.INTERNAL_ERROR.value,
            error_type=type(error).__name__,
            error_message=str(error),
            remote_addr=request.remote_addr,
            path=request.path,
            exc_info=True,
        )

        return Decision(
            action=GateAction.DENY,
            reason="Internal access evaluation error",
            requester=request.remote_addr,
            processing_time_ms=processing_time,
        )


class AuditLogger:
    """Structured audit logging for access decisions"""

    def __init__(self, max_entries: int = 1000) -> None:
        self.logger = structlog.get_logger("audit")
        self.max_entries = max_entries
        self.entries: deque[AuditEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def log_decision(self, request: AccessRequest, decision: Decision) -> AuditEntry:
        """Record a decision in the audit trail"""
        entry = AuditEntry(request=request, decision=decision)

        with self._lock:
            self.entries.append(entry)

        log = self.logger.info if decision.allowed else self.logger.warning
        log(
            "Access decision logged",
            audit_id=entry.id,
            request_id=request.request_id,
            action=decision.action.value,
            reason=decision.reason,
            matched_rule=decision.matched_rule,
            remote_addr=request.remote_addr,
            path=request.path,
            processing_time_ms=decision.processing_time_ms,
            timestamp=entry.timestamp.isoformat(),
        )
        return entry

    def get_recent_entries(self, limit: int = 100) -> list[AuditEntry]:
        """Get recent audit entries for monitoring"""
        with self._lock:
            entries = list(self.entries)
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)[:limit]

    def get_stats(self) -> dict[str, Any]:
        """Get audit statistics for monitoring"""
        with self._lock:
            entries = list(self.entries)
        if not entries:
            return {"total": 0}

        total = len(entries)
        allowed = sum(1 for e in entries if e.decision.allowed)
        denied = total - allowed

        avg_processing_time = (
            sum(e.decision.processing_time_ms for e in entries) / total
        )

        return {
            "total": total,
            "allowed": allowed,
            "denied": denied,
            "allow_rate": allowed / total,
            "avg_processing_time_ms": avg_processing_time,
        }
