"""
Domain Exceptions

All engine failures derive from HabitTrackerError so the calling layer can
catch them in one place. Nothing in the engine retries or swallows these:
the caller corrects its input and re-invokes.
"""


class HabitTrackerError(Exception):
    """Base exception for habit tracker operations."""
    pass


class ValidationError(HabitTrackerError):
    """Input rejected before anything was written."""
    pass


class DuplicateUser(ValidationError):
    """A user with this name is already registered."""
    pass


class InvalidHabit(ValidationError):
    """Habit list is not exactly five distinct, non-blank names."""
    pass


class InvalidStatus(ValidationError):
    """Cell status is not one of the four known values."""
    pass


class NotFoundError(HabitTrackerError):
    """Referenced user, habit, date or period does not exist."""
    pass


class StateError(HabitTrackerError):
    """Operation conflicts with existing state (e.g. period already exists)."""
    pass
