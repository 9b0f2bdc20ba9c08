"""
Habit Repository

Maps registry, period grids and summary records to and from rows of a
TabularStore.

Table layouts:
- Users:   User | Habit 1..5 | Total Charges (£)
- Summary: User | Month | Completion Rate | Charges
- Period:  User | Habit | <one ISO date per day> | Total | Charges
           (table "<prefix><Mon><YYYY>", e.g. "Tracking Feb2024")

Period tables also carry two derived columns: Total is the row's
complete count and Charges holds the user's charge on the first row of
each user block. They are written for people reading the table and are
ignored when a period is loaded back.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

import structlog

from habit_tracker.engine.period import PeriodCatalog, PeriodGrid
from habit_tracker.engine.registry import HabitRegistry
from habit_tracker.errors import HabitTrackerError
from habit_tracker.models.audit import AUDIT_COLUMNS, AuditEvent
from habit_tracker.models.habit import (
    HABITS_PER_USER,
    BillingResult,
    PeriodKey,
    SummaryRecord,
    User,
)
from habit_tracker.services.storage.interface import (
    AuditStorageInterface,
    StorageError,
    TabularStore,
)


logger = structlog.get_logger(__name__)

SUMMARY_COLUMNS = ["User", "Month", "Completion Rate", "Charges"]


def users_header(currency_symbol: str = "£") -> list[str]:
    habits = [f"Habit {i}" for i in range(1, HABITS_PER_USER + 1)]
    return ["User", *habits, f"Total Charges ({currency_symbol})"]


class HabitRepository:
    """
    Reads and writes the tracker's tables.

    Every save rewrites the whole table, so saving the same state twice
    leaves the store unchanged.
    """

    def __init__(
        self,
        store: TabularStore,
        users_table: str = "User Habits",
        summary_table: str = "Summary View",
        period_prefix: str = "Tracking ",
        currency_symbol: str = "£",
    ):
        self._store = store
        self.users_table = users_table
        self.summary_table = summary_table
        self.period_prefix = period_prefix
        self._users_header = users_header(currency_symbol)

    @property
    def store(self) -> TabularStore:
        return self._store

    def initialize(self) -> list[str]:
        """
        Create the users and summary tables if missing.

        Returns:
            Names of the tables that were created
        """
        created = []
        for table, header in (
            (self.users_table, self._users_header),
            (self.summary_table, SUMMARY_COLUMNS),
        ):
            if not self._store.table_exists(table):
                self._store.create_table(table, header)
                created.append(table)
        return created

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def _user_to_row(self, user: User) -> list:
        return [user.name, *user.habits, str(user.lifetime_charge)]

    def _row_to_user(self, row: list[str], row_number: int) -> User:
        padded = row + [""] * (HABITS_PER_USER + 2 - len(row))
        try:
            charge = Decimal(padded[HABITS_PER_USER + 1] or "0")
            return User(
                name=padded[0],
                habits=tuple(padded[1:HABITS_PER_USER + 1]),
                lifetime_charge=charge,
            )
        except (InvalidOperation, ValueError) as e:
            raise StorageError(
                f"Malformed user row {row_number} in {self.users_table}: {e}"
            ) from e

    def load_registry(self) -> HabitRegistry:
        rows = self._store.read_rows(self.users_table)[1:]
        users = [
            self._row_to_user(row, number)
            for number, row in enumerate(rows, start=2)
            if row and row[0].strip()
        ]
        try:
            return HabitRegistry(users)
        except HabitTrackerError as e:
            raise StorageError(f"Invalid users table: {e}") from e

    def append_user(self, user: User) -> None:
        self._store.append_row(self.users_table, self._user_to_row(user))

    def save_registry(self, registry: HabitRegistry) -> None:
        rows = [self._users_header]
        rows.extend(self._user_to_row(user) for user in registry.list_users())
        self._store.write_rows(self.users_table, rows)

    # -------------------------------------------------------------------------
    # Periods
    # -------------------------------------------------------------------------

    def period_table(self, key: PeriodKey) -> str:
        return f"{self.period_prefix}{key.table_label}"

    def list_period_keys(self) -> list[PeriodKey]:
        keys = []
        for table in self._store.list_tables():
            if not table.startswith(self.period_prefix):
                continue
            label = table[len(self.period_prefix):]
            try:
                keys.append(PeriodKey.from_table_label(label))
            except ValueError:
                logger.warning("unrecognized_period_table", table=table)
        return sorted(keys, key=lambda key: key.sort_key)

    def period_exists(self, key: PeriodKey) -> bool:
        return self._store.table_exists(self.period_table(key))

    def save_period(
        self,
        grid: PeriodGrid,
        billing: Optional[dict[str, BillingResult]] = None,
    ) -> None:
        """Write a grid, creating its table on first save."""
        table = self.period_table(grid.key)
        header = ["User", "Habit", *(day.isoformat() for day in grid.dates), "Total", "Charges"]

        rows = [header]
        previous_user = None
        for user, habit, cells in grid.rows():
            charge = ""
            if billing and user != previous_user and user in billing:
                charge = str(billing[user].charge)
            previous_user = user
            rows.append([
                user,
                habit,
                *(cell.value for cell in cells),
                grid.row_complete_count(user, habit),
                charge,
            ])

        if not self._store.table_exists(table):
            self._store.create_table(table, header)
        self._store.write_rows(table, rows)

    def load_period(self, key: PeriodKey) -> PeriodGrid:
        table = self.period_table(key)
        rows = self._store.read_rows(table)
        if not rows:
            raise StorageError(f"Period table {table} has no header")

        header, body = rows[0], [row for row in rows[1:] if row and row[0].strip()]
        try:
            dates = [date.fromisoformat(value) for value in header[2:-2]]
        except ValueError as e:
            raise StorageError(f"Bad date header in {table}: {e}") from e

        snapshot: dict[str, list[str]] = {}
        for row in body:
            if len(row) < 2 or not row[1].strip():
                raise StorageError(f"Row without habit in {table}: {row[:2]}")
            snapshot.setdefault(row[0], []).append(row[1])
        grid = PeriodGrid(key, {name: tuple(habits) for name, habits in snapshot.items()})
        if list(grid.dates) != dates:
            raise StorageError(f"Dates in {table} do not match {key.label}")

        for number, row in enumerate(body, start=2):
            cells = row[2:2 + len(dates)]
            for day, value in zip(dates, cells):
                if not value.strip():
                    continue
                try:
                    grid.set_cell(row[0], row[1], day, value)
                except HabitTrackerError as e:
                    raise StorageError(f"{table} row {number}, {day}: {e}") from e
        return grid

    def load_periods(self) -> PeriodCatalog:
        return PeriodCatalog(self.load_period(key) for key in self.list_period_keys())

    def delete_period(self, key: PeriodKey) -> None:
        self._store.delete_table(self.period_table(key))

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def save_summary(self, records: Iterable[SummaryRecord]) -> None:
        """Replace the summary table with records."""
        rows = [SUMMARY_COLUMNS]
        rows.extend(
            [record.user, record.period.label, record.rate_display, str(record.charge)]
            for record in records
        )
        if not self._store.table_exists(self.summary_table):
            self._store.create_table(self.summary_table, SUMMARY_COLUMNS)
        self._store.write_rows(self.summary_table, rows)


class TabularAuditStorage(AuditStorageInterface):
    """
    Audit events appended to a table of the same store.
    """

    def __init__(self, store: TabularStore, table: str = "Audit Log"):
        self._store = store
        self._table = table

    def append_event(self, event: AuditEvent) -> bool:
        if not self._store.table_exists(self._table):
            self._store.create_table(self._table, AUDIT_COLUMNS)
        self._store.append_row(self._table, event.to_row())
        return True
