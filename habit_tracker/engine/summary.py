"""
Summary Aggregation

Rebuilds the summary records and every user's lifetime charge from the
full set of periods.

DESIGN DECISION: Nothing here is incremental. Each run discards the
previous records and overwrites lifetime totals with freshly summed
values, so running it twice (or re-running after a partial failure)
gives the same result and never double counts a charge.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from habit_tracker.engine.billing import BillingEngine
from habit_tracker.engine.period import PeriodGrid
from habit_tracker.engine.registry import HabitRegistry
from habit_tracker.models.habit import AggregationResult, SummaryRecord


logger = structlog.get_logger(__name__)


class SummaryAggregator:
    """Drives the billing engine across periods and owns the summary records."""

    def __init__(self, engine: Optional[BillingEngine] = None):
        self._engine = engine or BillingEngine.from_settings()
        self._records: list[SummaryRecord] = []

    @property
    def records(self) -> list[SummaryRecord]:
        """Records from the last run."""
        return list(self._records)

    def run(
        self,
        periods: Iterable[PeriodGrid],
        registry: HabitRegistry,
    ) -> AggregationResult:
        """
        Recompute all summary records and lifetime totals.

        Users found in a period but no longer registered still get
        their summary record; they are left out of the totals.
        The registry is only written once every period is computed.
        """
        self._records = []
        records: list[SummaryRecord] = []
        charge_sums: dict[str, Decimal] = {}

        for grid in sorted(periods, key=lambda g: g.key.sort_key):
            for user in grid.users:
                result = self._engine.bill_user(grid, user)
                records.append(SummaryRecord(
                    user=user,
                    period=grid.key,
                    completion_rate=result.completion_rate,
                    charge=result.charge,
                ))
                charge_sums[user] = charge_sums.get(user, Decimal("0")) + result.charge

        updated: dict[str, Decimal] = {}
        for user, total in charge_sums.items():
            if user not in registry:
                logger.info("summary_user_not_registered", user=user, total=str(total))
                continue
            updated[user] = total

        for user, total in updated.items():
            registry.set_lifetime_charge(user, total)

        self._records = records
        return AggregationResult(records=records, updated_totals=updated)


def run_summary_aggregation(
    periods: Iterable[PeriodGrid],
    registry: HabitRegistry,
    engine: Optional[BillingEngine] = None,
) -> AggregationResult:
    return SummaryAggregator(engine).run(periods, registry)
