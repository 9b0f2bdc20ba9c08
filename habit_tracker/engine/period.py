"""
Period Grids

A PeriodGrid is one calendar month of daily status cells for every
(user, habit) pair in the user snapshot taken when the month was created.

The dates and the set of rows are fixed at creation. Only cell statuses
change afterwards, and nothing derived (rates, charges) is cached here:
those are computed on demand by the billing engine.
"""

import calendar
from datetime import date, datetime
from typing import Iterable, Iterator, Optional, Union

from habit_tracker.errors import InvalidHabit, NotFoundError, StateError, ValidationError
from habit_tracker.models.habit import HABITS_PER_USER, HabitStatus, PeriodKey, User


def days_in_month(year: int, month: int) -> int:
    """Gregorian month length (February has 29 days in leap years)."""
    return calendar.monthrange(year, month)[1]


class PeriodGrid:
    """
    Status cells for one month.

    Rows are ordered user by user, five habits each, in snapshot order.
    """

    def __init__(
        self,
        key: PeriodKey,
        snapshot: dict[str, tuple[str, ...]],
    ):
        self.key = key
        self._dates = tuple(
            date(key.year, key.month, day)
            for day in range(1, days_in_month(key.year, key.month) + 1)
        )
        self._date_index = {day: i for i, day in enumerate(self._dates)}
        self._snapshot = {name: tuple(habits) for name, habits in snapshot.items()}
        self._rows: dict[tuple[str, str], list[HabitStatus]] = {
            (name, habit): [HabitStatus.EMPTY] * len(self._dates)
            for name, habits in self._snapshot.items()
            for habit in habits
        }

    def __repr__(self) -> str:
        return f"PeriodGrid({self.key.label}, users={len(self._snapshot)})"

    @property
    def dates(self) -> tuple[date, ...]:
        return self._dates

    @property
    def users(self) -> list[str]:
        """User names in the creation snapshot, in order."""
        return list(self._snapshot)

    def habits(self, user: str) -> tuple[str, ...]:
        try:
            return self._snapshot[user]
        except KeyError:
            raise NotFoundError(f"User {user!r} is not part of period {self.key.label}") from None

    def rows(self) -> Iterator[tuple[str, str, tuple[HabitStatus, ...]]]:
        """Yield (user, habit, statuses) for every row."""
        for (user, habit), cells in self._rows.items():
            yield user, habit, tuple(cells)

    def _row(self, user: str, habit: str) -> list[HabitStatus]:
        habits = self.habits(user)
        if habit not in habits:
            raise NotFoundError(
                f"Habit {habit!r} is not tracked for {user} in {self.key.label}"
            )
        return self._rows[(user, habit)]

    def _index(self, day: date) -> int:
        if isinstance(day, datetime):
            day = day.date()
        try:
            return self._date_index[day]
        except (KeyError, TypeError):
            raise NotFoundError(f"{day} is outside period {self.key.label}") from None

    def get_cell(self, user: str, habit: str, day: date) -> HabitStatus:
        return self._row(user, habit)[self._index(day)]

    def set_cell(
        self,
        user: str,
        habit: str,
        day: date,
        status: Union[HabitStatus, str],
    ) -> HabitStatus:
        """
        Replace one cell's status.

        Setting the same status twice is a no-op, so retries are safe.

        Raises:
            InvalidStatus: If status is not one of the four statuses
            NotFoundError: If (user, habit, day) is outside the grid
        """
        parsed = HabitStatus.parse(status)
        row = self._row(user, habit)
        row[self._index(day)] = parsed
        return parsed

    def row_complete_count(self, user: str, habit: str) -> int:
        return sum(1 for cell in self._row(user, habit) if cell is HabitStatus.COMPLETE)

    def user_cells(self, user: str) -> list[HabitStatus]:
        """All cells across the user's habit rows."""
        cells: list[HabitStatus] = []
        for habit in self.habits(user):
            cells.extend(self._rows[(user, habit)])
        return cells


class PeriodCatalog:
    """
    The caller's collection of existing periods, one per (year, month).
    """

    def __init__(self, periods: Iterable[PeriodGrid] = ()):
        self._periods: dict[PeriodKey, PeriodGrid] = {}
        for grid in periods:
            self.add(grid)

    def __len__(self) -> int:
        return len(self._periods)

    def __contains__(self, key: object) -> bool:
        return key in self._periods

    def __iter__(self) -> Iterator[PeriodGrid]:
        return iter(self.periods())

    def periods(self) -> list[PeriodGrid]:
        """Periods in chronological order."""
        return sorted(self._periods.values(), key=lambda grid: grid.key.sort_key)

    def add(self, grid: PeriodGrid) -> None:
        if grid.key in self._periods:
            raise StateError(f"Period {grid.key.label} already exists")
        self._periods[grid.key] = grid

    def get(self, year: int, month: int) -> PeriodGrid:
        key = period_key(year, month)
        try:
            return self._periods[key]
        except KeyError:
            raise NotFoundError(f"Period {key.label} does not exist") from None

    def remove(self, year: int, month: int) -> PeriodGrid:
        grid = self.get(year, month)
        del self._periods[grid.key]
        return grid

    def create_period(self, year: int, month: int, users: Iterable[User]) -> PeriodGrid:
        """Build a new period and add it to this catalog."""
        key = period_key(year, month)
        if key in self._periods:
            raise StateError(f"Period {key.label} already exists")
        grid = _build_grid(key, users)
        self._periods[key] = grid
        return grid


def period_key(year: int, month: int) -> PeriodKey:
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValidationError(f"Year out of range: {year}")
    return PeriodKey(year=year, month=month)


def _build_grid(key: PeriodKey, users: Iterable[User]) -> PeriodGrid:
    snapshot: dict[str, tuple[str, ...]] = {}
    for user in users:
        if user.name in snapshot:
            raise ValidationError(f"User {user.name} listed twice")
        if len(user.habits) != HABITS_PER_USER:
            raise InvalidHabit(
                f"{user.name} has {len(user.habits)} habits, expected {HABITS_PER_USER}"
            )
        snapshot[user.name] = tuple(user.habits)
    if not snapshot:
        raise StateError("No users found. Register users before creating a period")
    return PeriodGrid(key, snapshot)


def create_period(
    year: int,
    month: int,
    users: Iterable[User],
    existing: Optional[PeriodCatalog] = None,
) -> PeriodGrid:
    """
    Create the grid for (year, month) with every cell Empty.

    When a catalog is given the new period is added to it, and an
    already existing (year, month) raises StateError.
    """
    if existing is not None:
        return existing.create_period(year, month, users)
    return _build_grid(period_key(year, month), users)


def set_cell_status(
    grid: PeriodGrid,
    user: str,
    habit: str,
    day: date,
    status: Union[HabitStatus, str],
) -> HabitStatus:
    return grid.set_cell(user, habit, day, status)
