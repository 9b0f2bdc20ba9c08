"""Computation engine: registry, period grids, billing and summaries."""

from habit_tracker.engine.billing import (
    CHARGE_AMOUNT,
    COMPLETION_THRESHOLD,
    BillingEngine,
    run_billing,
)
from habit_tracker.engine.period import (
    PeriodCatalog,
    PeriodGrid,
    create_period,
    days_in_month,
    period_key,
    set_cell_status,
)
from habit_tracker.engine.registry import HabitRegistry
from habit_tracker.engine.summary import SummaryAggregator, run_summary_aggregation

__all__ = [
    "CHARGE_AMOUNT",
    "COMPLETION_THRESHOLD",
    "BillingEngine",
    "HabitRegistry",
    "PeriodCatalog",
    "PeriodGrid",
    "SummaryAggregator",
    "create_period",
    "days_in_month",
    "period_key",
    "run_billing",
    "run_summary_aggregation",
    "set_cell_status",
]
