"""
Billing Engine

Pure computation of completion rate and charge for one user in one period.

Exempt and Empty cells are left out of the denominator: a user is not
penalized for a habit that does not apply on a day, nor for days not
recorded yet.

ZERO-TRACKABLE POLICY: a user with no trackable cells has an undefined
completion rate (None) and is never charged. A month with nothing
recorded is not evidence of missed habits.
"""

from decimal import Decimal
from typing import Optional

from habit_tracker.config import BillingSettings, get_settings
from habit_tracker.engine.period import PeriodGrid
from habit_tracker.models.habit import BillingResult, HabitStatus


_BILLING_DEFAULTS = BillingSettings.model_fields
CHARGE_AMOUNT: Decimal = _BILLING_DEFAULTS["charge_amount"].default
COMPLETION_THRESHOLD: float = _BILLING_DEFAULTS["completion_threshold"].default


class BillingEngine:
    """
    Stateless rate/charge calculator.

    The threshold and amount are fixed per engine instance. Either one
    left as None is read from BillingSettings (BILLING_* variables).
    """

    def __init__(
        self,
        charge_amount: Optional[Decimal] = None,
        threshold: Optional[float] = None,
    ):
        if charge_amount is None or threshold is None:
            settings = get_settings().billing
            if charge_amount is None:
                charge_amount = settings.charge_amount
            if threshold is None:
                threshold = settings.completion_threshold
        self.charge_amount = Decimal(charge_amount)
        self.threshold = threshold

    @classmethod
    def from_settings(cls, settings: Optional[BillingSettings] = None) -> "BillingEngine":
        settings = settings or get_settings().billing
        return cls(
            charge_amount=settings.charge_amount,
            threshold=settings.completion_threshold,
        )

    def trackable_count(self, grid: PeriodGrid, user: str) -> int:
        return sum(1 for cell in grid.user_cells(user) if cell.is_trackable)

    def complete_count(self, grid: PeriodGrid, user: str) -> int:
        return sum(1 for cell in grid.user_cells(user) if cell is HabitStatus.COMPLETE)

    def completion_rate(self, grid: PeriodGrid, user: str) -> Optional[float]:
        """Complete / trackable, or None when nothing is trackable."""
        trackable = self.trackable_count(grid, user)
        if trackable == 0:
            return None
        return self.complete_count(grid, user) / trackable

    def charge(self, rate: Optional[float]) -> Decimal:
        if rate is None:
            return Decimal("0")
        if rate < self.threshold:
            return self.charge_amount
        return Decimal("0")

    def bill_user(self, grid: PeriodGrid, user: str) -> BillingResult:
        trackable = self.trackable_count(grid, user)
        complete = self.complete_count(grid, user)
        rate = complete / trackable if trackable else None
        return BillingResult(
            user=user,
            trackable=trackable,
            complete=complete,
            completion_rate=rate,
            charge=self.charge(rate),
        )

    def run_billing(self, grid: PeriodGrid) -> dict[str, BillingResult]:
        """Bill every user in the period's snapshot, in snapshot order."""
        return {user: self.bill_user(grid, user) for user in grid.users}


def run_billing(
    grid: PeriodGrid,
    engine: Optional[BillingEngine] = None,
) -> dict[str, BillingResult]:
    return (engine or BillingEngine.from_settings()).run_billing(grid)
