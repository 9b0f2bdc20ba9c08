"""
Core Data Models for Habit Tracker

These models define the schemas for users, cell statuses, periods and the
derived billing/summary projections.

DESIGN DECISION: Status values are a closed enum, never raw strings.
Anything read from storage or typed by a user goes through
HabitStatus.parse(), so an unknown value is rejected at the boundary
instead of silently miscounted.
"""

import re
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from habit_tracker.errors import InvalidStatus


HABITS_PER_USER = 5

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
_TABLE_LABEL = re.compile(r"([A-Za-z]{3})(\d{4})")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class HabitStatus(str, Enum):
    """
    Status of one habit on one day.

    The value is the symbol written to the tracking table.
    """
    COMPLETE = "✓"
    INCOMPLETE = "✗"
    EXEMPT = "E"    # Habit does not apply that day
    EMPTY = "-"     # Not recorded yet

    @classmethod
    def parse(cls, value: Union["HabitStatus", str]) -> "HabitStatus":
        """
        Convert a member, its symbol, or its name into a HabitStatus.

        Names are matched case-insensitively ("complete", "Exempt").

        Raises:
            InvalidStatus: If the value is none of the four statuses
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            for status in cls:
                if text == status.value or text.upper() == status.name:
                    return status
        raise InvalidStatus(
            f"Invalid status {value!r}; expected one of "
            f"{', '.join(s.value for s in cls)}"
        )

    @property
    def is_trackable(self) -> bool:
        """Trackable cells count towards the completion-rate denominator."""
        return self not in (HabitStatus.EXEMPT, HabitStatus.EMPTY)


# =============================================================================
# USERS
# =============================================================================

class User(BaseModel):
    """
    A registered user and their five habits.

    lifetime_charge is owned by the summary aggregation: it is overwritten
    with a freshly computed total on every run, never incremented.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    name: str = Field(
        ...,
        min_length=1,
        description="Unique user name"
    )
    habits: tuple[str, ...] = Field(
        ...,
        min_length=HABITS_PER_USER,
        max_length=HABITS_PER_USER,
        description="Exactly five habit names, in display order"
    )
    lifetime_charge: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Sum of charges across all periods"
    )

    @field_validator('habits')
    @classmethod
    def validate_habits(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if any(not habit for habit in v):
            raise ValueError("Habit names cannot be blank")
        if len(set(v)) != len(v):
            raise ValueError("Habit names must be unique per user")
        return v


# =============================================================================
# PERIODS
# =============================================================================

class PeriodKey(BaseModel):
    """
    Identifies one calendar month of tracking.

    label ('Feb24') is the short form shown in the summary. table_label
    ('Feb2024') keeps all four year digits and names the period's table,
    so every (year, month) maps to a distinct table and parses back.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @property
    def label(self) -> str:
        """Short label, e.g. 'Feb24'."""
        return f"{MONTH_ABBREVIATIONS[self.month - 1]}{self.year % 100:02d}"

    @property
    def table_label(self) -> str:
        """Unambiguous label, e.g. 'Feb2024'."""
        return f"{MONTH_ABBREVIATIONS[self.month - 1]}{self.year:04d}"

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, self.month)

    @classmethod
    def from_table_label(cls, label: str) -> "PeriodKey":
        """
        Parse a table_label back into a key.

        Raises:
            ValueError: If label is not a month abbreviation followed
                by a four-digit year
        """
        match = _TABLE_LABEL.fullmatch(label.strip())
        if match is None:
            raise ValueError(f"Not a period label: {label!r}")
        month = MONTH_ABBREVIATIONS.index(match.group(1).title()) + 1
        return cls(year=int(match.group(2)), month=month)

    def __str__(self) -> str:
        return self.label


# =============================================================================
# DERIVED PROJECTIONS
# =============================================================================

def format_rate(rate: Optional[float]) -> str:
    """Render a completion rate as '66.7%', or 'N/A' when undefined."""
    if rate is None:
        return "N/A"
    return f"{rate * 100:.1f}%"


class BillingResult(BaseModel):
    """
    Completion rate and charge for one user in one period.

    completion_rate is None when the user has no trackable cells;
    such a period is never charged.
    """
    model_config = ConfigDict(frozen=True)

    user: str
    trackable: int = Field(..., ge=0)
    complete: int = Field(..., ge=0)
    completion_rate: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    charge: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def is_charged(self) -> bool:
        return self.charge > 0


class SummaryRecord(BaseModel):
    """
    One summary row: a user's result for one period.

    Disposable projection - the full set is rebuilt on every aggregation run.
    """
    model_config = ConfigDict(frozen=True)

    user: str
    period: PeriodKey
    completion_rate: Optional[float] = None
    charge: Decimal = Decimal("0")

    @property
    def rate_display(self) -> str:
        return format_rate(self.completion_rate)


class AggregationResult(BaseModel):
    """Output of one summary aggregation run."""

    records: list[SummaryRecord] = Field(default_factory=list)
    updated_totals: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def total_charged(self) -> Decimal:
        return sum(self.updated_totals.values(), Decimal("0"))
