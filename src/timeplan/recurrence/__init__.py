# src/timeplan/recurrence/__init__.py
"""
timeplan.recurrence
~~~~~~~~~~~~~~~~~~~

Repeating schedules.  A ``RecurrenceSpec`` describes the schedule (daily,
weekly or monthly, by date or by "n-th weekday"); a ``RecurrenceExpander``
turns it into a bounded, ordered list of occurrence dates, all strictly after
the window start.

Basic usage::

    from datetime import date
    from timeplan.recurrence import RecurrenceExpander, RecurrenceSpec

    spec = RecurrenceSpec("weekly-review", "weekly", weekly_day_of_week=0,
                          name="Review", time_allocation_hours=8)
    expander = RecurrenceExpander()
    expander.expand(spec, date(2025, 1, 1), date(2025, 1, 31))
    # → [2025-01-06, 2025-01-13, 2025-01-20, 2025-01-27]

Open-ended series are generated a year ahead (ten occurrences at most) and
topped up later, one batch per call::

    more = expander.ensure_available(spec, last_generated, target_date, generated=10)

Malformed specs raise ``RecurrenceError`` when constructed.

Public API
----------
RecurrenceSpec        The schedule definition (frozen dataclass).
RecurrenceType        daily / weekly / monthly.
MonthlyPattern        date / day_of_week.
RecurrenceExpander    Bounded expansion, top-ups and milestone drafts.
RecurrenceError       Raised for malformed specs.
"""

from __future__ import annotations

from timeplan.recurrence._exceptions import RecurrenceError
from timeplan.recurrence.expander import (
    RecurrenceExpander,
    estimate_occurrence_count,
    first_occurrence,
    generated_from,
    iter_occurrences,
    next_occurrence,
)
from timeplan.recurrence.spec import MonthlyPattern, RecurrenceSpec, RecurrenceType, describe

__all__ = [
    "MonthlyPattern",
    "RecurrenceError",
    "RecurrenceExpander",
    "RecurrenceSpec",
    "RecurrenceType",
    "describe",
    "estimate_occurrence_count",
    "first_occurrence",
    "generated_from",
    "iter_occurrences",
    "next_occurrence",
]
