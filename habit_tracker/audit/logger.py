"""
Audit Logger

DESIGN DECISION: Every state-changing command is logged.
This provides:
1. Traceability of every charge back to the cells behind it
2. Debugging capability
3. A history users can read next to their tables

The audit logger:
- Gracefully handles storage failures (a failed audit write never
  aborts the command being audited)
- Supports correlation IDs to tie together the events of one command
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from habit_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from habit_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit table (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("habit_tracker.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_user_registered(
        self,
        name: str,
        habits: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.user_registered(name, habits, correlation_id))

    def log_registration_cancelled(
        self,
        stage: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.registration_cancelled(stage, correlation_id))

    def log_user_removed(
        self,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.user_removed(name, correlation_id))

    def log_period_created(
        self,
        label: str,
        days: int,
        users: list[str],
        reset: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.period_created(
            label=label,
            days=days,
            users=users,
            reset=reset,
            correlation_id=correlation_id,
        ))

    def log_cell_updated(
        self,
        label: str,
        user: str,
        habit: str,
        day: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.cell_updated(
            label=label,
            user=user,
            habit=habit,
            day=day,
            status=status,
            correlation_id=correlation_id,
        ))

    def log_billing_run(
        self,
        label: str,
        charges: dict[str, Decimal],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.billing_run(label, charges, correlation_id))

    def log_summary_rebuilt(
        self,
        period_count: int,
        record_count: int,
        totals: dict[str, Decimal],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.summary_rebuilt(period_count, record_count, correlation_id))
        for name, total in totals.items():
            self.log(AuditEventBuilder.lifetime_total_updated(name, total, correlation_id))

    def log_validation_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(operation, error_message, correlation_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a command and pass it through all
    subsequent operations.
    """
    return uuid4()
