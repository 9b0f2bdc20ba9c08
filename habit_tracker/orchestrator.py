"""
Main Orchestrator for Habit Tracker

This module ties the engine to storage and auditing and defines the
commands a front end calls:
1. Setup (create the users and summary tables)
2. Register a user (directly or through a prompt dialog) or remove one
3. Create a month's period
4. Record a cell status
5. Bill a period
6. Rebuild the summary and lifetime totals

DESIGN DECISION: Each command loads what it needs from the repository,
computes in memory, and writes only after computation succeeds. A
rejected command leaves the registry and summary tables untouched.
"""

from datetime import date
from typing import Iterable, Optional, Union
from uuid import UUID

import structlog

from habit_tracker.audit import AuditLogger, create_correlation_id
from habit_tracker.config import get_settings
from habit_tracker.engine import (
    BillingEngine,
    PeriodGrid,
    SummaryAggregator,
    create_period,
    period_key,
)
from habit_tracker.errors import HabitTrackerError, NotFoundError, StateError, ValidationError
from habit_tracker.models.habit import (
    HABITS_PER_USER,
    AggregationResult,
    BillingResult,
    HabitStatus,
    User,
)
from habit_tracker.services.prompt import UserPrompt
from habit_tracker.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsTabularStore,
    HabitRepository,
    InMemoryTabularStore,
    StorageError,
    TabularAuditStorage,
)


logger = structlog.get_logger(__name__)


class HabitTracker:
    """
    Command interface over the habit tracker.

    Periods are addressed by (year, month).
    """

    def __init__(
        self,
        repository: HabitRepository,
        engine: Optional[BillingEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._engine = engine or BillingEngine.from_settings()
        self._aggregator = SummaryAggregator(self._engine)
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def repository(self) -> HabitRepository:
        return self._repository

    @property
    def engine(self) -> BillingEngine:
        return self._engine

    def _log_storage_error(
        self,
        operation: str,
        error: StorageError,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    def setup(self) -> list[str]:
        """Create missing tables. Safe to call repeatedly."""
        return self._repository.initialize()

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def list_users(self) -> list[User]:
        return self._repository.load_registry().list_users()

    def register_user(
        self,
        name: str,
        habits: Iterable[str],
        correlation_id: Optional[UUID] = None,
    ) -> User:
        """
        Register and persist a new user.

        Raises:
            DuplicateUser, InvalidHabit, ValidationError
        """
        correlation_id = correlation_id or create_correlation_id()
        registry = self._repository.load_registry()
        try:
            user = registry.register_user(name, list(habits))
        except ValidationError as e:
            self._audit_logger.log_validation_failed("register_user", str(e), correlation_id)
            raise

        try:
            self._repository.append_user(user)
        except StorageError as e:
            self._log_storage_error("register_user", e, correlation_id)
            raise
        self._audit_logger.log_user_registered(user.name, list(user.habits), correlation_id)
        return user

    def register_user_interactive(self, prompt: UserPrompt) -> Optional[User]:
        """
        Ask for a name and five habits, then register the user.

        Cancelling any question, or giving a blank or duplicate
        answer, stops the dialog without writing anything.

        Returns:
            The new user, or None if nothing was registered
        """
        correlation_id = create_correlation_id()

        name = prompt.ask_text("Enter user name:")
        if name is None:
            self._audit_logger.log_registration_cancelled("name", correlation_id)
            return None
        name = name.strip()
        if not name:
            prompt.notify("Please enter a valid user name.")
            return None
        if name in self._repository.load_registry():
            prompt.notify(f"User {name} already exists.")
            return None

        habits = []
        for i in range(1, HABITS_PER_USER + 1):
            habit = prompt.ask_text(f"Enter Habit {i} for {name}:")
            if habit is None:
                self._audit_logger.log_registration_cancelled(f"habit {i}", correlation_id)
                return None
            habit = habit.strip()
            if not habit:
                prompt.notify(f"Please enter a valid habit {i}.")
                return None
            habits.append(habit)

        try:
            user = self.register_user(name, habits, correlation_id)
        except ValidationError as e:
            prompt.notify(str(e))
            return None

        prompt.notify(
            f'User "{user.name}" has been added with {len(user.habits)} habits. '
            "They will appear in the next period you create."
        )
        return user

    def remove_user(self, name: str) -> User:
        """
        Remove a registered user.

        Existing period tables keep the user's rows, so the next summary
        run still lists their past months but no longer updates a total.

        Raises:
            NotFoundError: If no user has that name
        """
        correlation_id = create_correlation_id()
        registry = self._repository.load_registry()
        user = registry.remove_user(name)
        try:
            self._repository.save_registry(registry)
        except StorageError as e:
            self._log_storage_error("remove_user", e, correlation_id)
            raise
        self._audit_logger.log_user_removed(user.name, correlation_id)
        return user

    # -------------------------------------------------------------------------
    # Periods
    # -------------------------------------------------------------------------

    def create_period(
        self,
        year: int,
        month: int,
        prompt: Optional[UserPrompt] = None,
    ) -> PeriodGrid:
        """
        Create the period for (year, month) from the current users.

        If the period already exists it is only replaced when prompt is
        given and the user confirms the reset.

        Raises:
            StateError: Period exists and was not reset, or no users
            ValidationError: Month out of range
        """
        correlation_id = create_correlation_id()
        key = period_key(year, month)
        users = self._repository.load_registry().list_users()

        reset = False
        if self._repository.period_exists(key):
            question = f"Period {key.label} already exists. Would you like to reset it?"
            if prompt is None or not prompt.confirm(question):
                raise StateError(f"Period {key.label} already exists")
            reset = True

        grid = create_period(year, month, users)

        try:
            if reset:
                self._repository.delete_period(key)
            self._repository.save_period(grid, self._engine.run_billing(grid))
        except StorageError as e:
            self._log_storage_error("create_period", e, correlation_id)
            raise
        self._audit_logger.log_period_created(
            label=key.label,
            days=len(grid.dates),
            users=grid.users,
            reset=reset,
            correlation_id=correlation_id,
        )
        return grid

    def load_period(self, year: int, month: int) -> PeriodGrid:
        key = period_key(year, month)
        if not self._repository.period_exists(key):
            raise NotFoundError(f"Period {key.label} does not exist")
        return self._repository.load_period(key)

    def set_cell_status(
        self,
        year: int,
        month: int,
        user: str,
        habit: str,
        day: date,
        status: Union[HabitStatus, str],
    ) -> HabitStatus:
        """
        Record one day's status for one habit and save the period.

        Raises:
            InvalidStatus: Unknown status value
            NotFoundError: Unknown period, user, habit or date
        """
        correlation_id = create_correlation_id()
        grid = self.load_period(year, month)
        try:
            parsed = grid.set_cell(user, habit, day, status)
        except HabitTrackerError as e:
            self._audit_logger.log_validation_failed("set_cell_status", str(e), correlation_id)
            raise

        try:
            self._repository.save_period(grid, self._engine.run_billing(grid))
        except StorageError as e:
            self._log_storage_error("set_cell_status", e, correlation_id)
            raise
        self._audit_logger.log_cell_updated(
            label=grid.key.label,
            user=user,
            habit=habit,
            day=day.isoformat(),
            status=parsed.name,
            correlation_id=correlation_id,
        )
        return parsed

    # -------------------------------------------------------------------------
    # Billing and summary
    # -------------------------------------------------------------------------

    def run_billing(self, year: int, month: int) -> dict[str, BillingResult]:
        """Bill every user of a period and refresh its Charges column."""
        correlation_id = create_correlation_id()
        grid = self.load_period(year, month)
        results = self._engine.run_billing(grid)
        try:
            self._repository.save_period(grid, results)
        except StorageError as e:
            self._log_storage_error("run_billing", e, correlation_id)
            raise
        self._audit_logger.log_billing_run(
            grid.key.label,
            {user: result.charge for user, result in results.items()},
            correlation_id,
        )
        return results

    def run_summary_aggregation(self) -> AggregationResult:
        """
        Rebuild the summary table and every lifetime total from all periods.

        Tables are written only after every period has been computed.
        The summary table goes first; if the users table write then
        fails, re-running repairs both.
        """
        correlation_id = create_correlation_id()
        registry = self._repository.load_registry()
        periods = self._repository.load_periods().periods()

        result = self._aggregator.run(periods, registry)

        try:
            self._repository.save_summary(result.records)
            self._repository.save_registry(registry)
        except StorageError as e:
            self._log_storage_error("run_summary_aggregation", e, correlation_id)
            raise
        self._audit_logger.log_summary_rebuilt(
            period_count=len(periods),
            record_count=len(result.records),
            totals=result.updated_totals,
            correlation_id=correlation_id,
        )
        return result


def create_app(use_storage: bool = True) -> HabitTracker:
    """
    Factory function to create a HabitTracker.

    Args:
        use_storage: Whether to use Google Sheets storage.
                    Set to False for an in-memory tracker.
    """
    settings = get_settings()
    store = None
    repository_kwargs = {"currency_symbol": settings.billing.currency_symbol}
    audit_table = "Audit Log"

    if use_storage:
        try:
            sheets = settings.google_sheets
            store = GoogleSheetsTabularStore(GoogleSheetsClient(sheets))
            repository_kwargs.update(
                users_table=sheets.users_sheet_name,
                summary_table=sheets.summary_sheet_name,
                period_prefix=sheets.tracking_sheet_prefix,
            )
            audit_table = sheets.audit_sheet_name
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            store = None

    if store is None:
        store = InMemoryTabularStore()

    tracker = HabitTracker(
        repository=HabitRepository(store, **repository_kwargs),
        engine=BillingEngine.from_settings(settings.billing),
        audit_logger=AuditLogger(TabularAuditStorage(store, audit_table)),
    )
    return tracker
