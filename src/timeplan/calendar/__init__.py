# src/timeplan/calendar/__init__.py
"""
timeplan.calendar
~~~~~~~~~~~~~~~~~

Date arithmetic primitives shared by every other planning component: day
differences, business-day stepping around weekends and holidays, month
stepping with day clamping, and "n-th weekday of the month" resolution.
Month arithmetic is expressed with ``dateutil.relativedelta``, so the
same deltas can be added to any date to step a monthly series.

Basic usage::

    from datetime import date
    from timeplan.calendar import add_business_days, nth_weekday_of_month, LAST

    add_business_days(date(2025, 1, 3), 1)            # Fri → Mon 2025-01-06
    nth_weekday_of_month(2025, 1, LAST, 4)            # last Friday → 2025-01-31

Holidays may be single dates, inclusive ``(start, end)`` pairs or
``TimeInterval`` objects::

    from timeplan.calendar import BusinessCalendar

    cal = BusinessCalendar(holidays=[(date(2025, 12, 24), date(2025, 12, 26))])
    cal.count_business_days(date(2025, 12, 22), date(2025, 12, 29))   # → 2

NumPy ``datetime64`` arrays are accepted wherever a date is.

Public API
----------
TimeInterval          Day-granular interval with the inclusive overlap test.
BusinessCalendar      Weekmask + holidays, compiled for NumPy busday routines.
CalendarError         Base exception for all calendar-related errors.
IntervalError         Raised for intervals whose start is not before the end.
"""

from __future__ import annotations

from timeplan.calendar._exceptions import CalendarError, IntervalError
from timeplan.calendar.calendar import (
    LAST,
    SECOND_TO_LAST,
    BusinessCalendar,
    add_business_days,
    add_days,
    add_months,
    clamp_day,
    count_business_days,
    day_difference,
    days_in_month,
    expand_holidays,
    is_business_day,
    is_weekend,
    nth_weekday_of_month,
    weekday_of_month_delta,
)
from timeplan.calendar.interval import TimeInterval, intervals_overlap, overlap_mask

__all__ = [
    "BusinessCalendar",
    "CalendarError",
    "IntervalError",
    "LAST",
    "SECOND_TO_LAST",
    "TimeInterval",
    "add_business_days",
    "add_days",
    "add_months",
    "clamp_day",
    "count_business_days",
    "day_difference",
    "days_in_month",
    "expand_holidays",
    "intervals_overlap",
    "is_business_day",
    "is_weekend",
    "nth_weekday_of_month",
    "overlap_mask",
    "weekday_of_month_delta",
]
