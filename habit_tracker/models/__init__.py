"""
Data Models Package

This package contains all Pydantic models used in the Habit Tracker system.
"""

from habit_tracker.models.habit import (
    HABITS_PER_USER,
    AggregationResult,
    BillingResult,
    HabitStatus,
    PeriodKey,
    SummaryRecord,
    User,
    format_rate,
)
from habit_tracker.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Habit models
    "HABITS_PER_USER",
    "AggregationResult",
    "BillingResult",
    "HabitStatus",
    "PeriodKey",
    "SummaryRecord",
    "User",
    "format_rate",
    # Audit models
    "AUDIT_COLUMNS",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
