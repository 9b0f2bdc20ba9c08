"""
Audit Models for Habit Tracker

Every state-changing command (registration, period creation, cell edits,
summary rebuilds) is logged for audit purposes. Charges are money, so
it must be possible to reconstruct why a user was charged.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Registry
    USER_REGISTERED = "user_registered"
    USER_REMOVED = "user_removed"
    REGISTRATION_CANCELLED = "registration_cancelled"

    # Periods
    PERIOD_CREATED = "period_created"
    PERIOD_RESET = "period_reset"
    CELL_UPDATED = "cell_updated"

    # Billing and summary
    BILLING_RUN = "billing_run"
    SUMMARY_REBUILT = "summary_rebuilt"
    LIFETIME_TOTAL_UPDATED = "lifetime_total_updated"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    entity_id is a string here (user name or period label) because
    the tracker's entities are identified by name, not UUID.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'period')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one command"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list:
        """
        Convert to a table row, columns ordered as AUDIT_COLUMNS.
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_registered("Alice", habits, correlation_id)
    """

    @staticmethod
    def user_registered(
        name: str,
        habits: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"User registered: {name}",
            details={"habits": list(habits)},
            is_user_action=True,
        )

    @staticmethod
    def user_removed(
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REMOVED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"User removed: {name}",
            is_user_action=True,
        )

    @staticmethod
    def registration_cancelled(
        stage: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REGISTRATION_CANCELLED,
            entity_type="user",
            correlation_id=correlation_id,
            description=f"Registration cancelled at {stage}",
            details={"stage": stage},
            is_user_action=True,
        )

    @staticmethod
    def period_created(
        label: str,
        days: int,
        users: list[str],
        reset: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_RESET if reset else AuditEventType.PERIOD_CREATED,
            severity=AuditSeverity.WARNING if reset else AuditSeverity.INFO,
            entity_type="period",
            entity_id=label,
            correlation_id=correlation_id,
            description=f"Period {'reset' if reset else 'created'}: {label} ({days} days)",
            details={"days": days, "users": list(users)},
            is_user_action=True,
        )

    @staticmethod
    def cell_updated(
        label: str,
        user: str,
        habit: str,
        day: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CELL_UPDATED,
            entity_type="period",
            entity_id=label,
            correlation_id=correlation_id,
            description=f"{user} / {habit} on {day} set to {status}",
            details={"user": user, "habit": habit, "date": day, "status": status},
            is_user_action=True,
        )

    @staticmethod
    def billing_run(
        label: str,
        charges: dict[str, Decimal],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        charged = [user for user, charge in charges.items() if charge > 0]
        return AuditEvent(
            event_type=AuditEventType.BILLING_RUN,
            entity_type="period",
            entity_id=label,
            correlation_id=correlation_id,
            description=f"Billing run for {label}: {len(charged)} of {len(charges)} users charged",
            details={"charges": {user: str(charge) for user, charge in charges.items()}},
        )

    @staticmethod
    def summary_rebuilt(
        period_count: int,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_REBUILT,
            entity_type="summary",
            correlation_id=correlation_id,
            description=f"Summary rebuilt from {period_count} periods ({record_count} rows)",
            details={"periods": period_count, "records": record_count},
        )

    @staticmethod
    def lifetime_total_updated(
        name: str,
        total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LIFETIME_TOTAL_UPDATED,
            entity_type="user",
            entity_id=name,
            correlation_id=correlation_id,
            description=f"Lifetime total for {name} set to {total}",
            details={"total": str(total)},
        )

    @staticmethod
    def validation_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"{operation} rejected",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
