"""
Habit Tracker - Source Package

Tracks daily completion of five personal habits per user, month by month,
charges users whose monthly completion rate falls below a threshold, and
keeps lifetime charge totals.

DESIGN PRINCIPLES:
1. Derived values (rates, charges, totals) are computed, never stored as truth
2. Summaries are rebuilt from scratch, so re-running is always safe
3. Fail early, fail visibly
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Habit Tracker Team"
