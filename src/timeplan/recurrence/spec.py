from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional

import numpy as np

from timeplan.calendar import LAST, SECOND_TO_LAST
from timeplan.recurrence._exceptions import RecurrenceError


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MonthlyPattern(str, Enum):
    DATE = "date"
    DAY_OF_WEEK = "day_of_week"


DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WEEK_OF_MONTH_NAMES = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", SECOND_TO_LAST: "2nd last", LAST: "last"}


_INTEGER_FIELDS = (
    "interval",
    "weekly_day_of_week",
    "monthly_date",
    "monthly_week_of_month",
    "monthly_day_of_week",
    "count",
)


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _check_weekday(value: Optional[int], field: str) -> None:
    if value is None:
        raise RecurrenceError(f"{field} is required for this recurrence.")
    if not 0 <= value <= 6:
        raise RecurrenceError(f"{field} must be in 0..6 (Monday..Sunday); got {value}.")


@dataclass(frozen=True, slots=True)
class RecurrenceSpec:
    """
    Declarative repeating schedule, persisted alongside its project.

    ``end_date`` and ``count`` bound the series and are mutually exclusive;
    with neither the series is open-ended.  Weekdays follow
    ``date.weekday()`` (Monday = 0).  ``monthly_week_of_month`` is 1..4 for
    the n-th occurrence, 5 for the second-to-last and 6 for the last.
    """

    id: str
    type: RecurrenceType
    interval: int = 1
    weekly_day_of_week: Optional[int] = None
    monthly_pattern: Optional[MonthlyPattern] = None
    monthly_date: Optional[int] = None
    monthly_week_of_month: Optional[int] = None
    monthly_day_of_week: Optional[int] = None
    end_date: Optional[date] = None
    count: Optional[int] = None
    name: str = "Milestone"
    time_allocation_hours: float = 0.0
    project_id: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "type", RecurrenceType(self.type))
            if self.monthly_pattern is not None:
                object.__setattr__(self, "monthly_pattern", MonthlyPattern(self.monthly_pattern))
        except ValueError as exc:
            raise RecurrenceError(str(exc)) from exc

        for name in _INTEGER_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if not _is_int(value):
                raise RecurrenceError(f"{name} must be an integer; got {value!r}.")
            object.__setattr__(self, name, int(value))

        if self.interval < 1:
            raise RecurrenceError(f"Recurrence interval must be at least 1; got {self.interval}.")
        if self.end_date is not None and self.count is not None:
            raise RecurrenceError("A recurrence is bounded by end_date or count, not both.")
        if self.count is not None and self.count < 1:
            raise RecurrenceError(f"Occurrence count must be at least 1; got {self.count}.")
        hours = self.time_allocation_hours
        if not np.isfinite(hours) or hours < 0.0:
            raise RecurrenceError(f"Hours per occurrence must be finite and non-negative; got {hours}.")

        if self.type is RecurrenceType.WEEKLY:
            _check_weekday(self.weekly_day_of_week, "weekly_day_of_week")
        elif self.type is RecurrenceType.MONTHLY:
            self._check_monthly()

    def _check_monthly(self) -> None:
        if self.monthly_pattern is None:
            raise RecurrenceError("Monthly recurrence must specify monthly_pattern.")
        if self.monthly_pattern is MonthlyPattern.DATE:
            if self.monthly_date is None or not 1 <= self.monthly_date <= 31:
                raise RecurrenceError(f"monthly_date must be in 1..31; got {self.monthly_date}.")
            return
        week = self.monthly_week_of_month
        if week is None or not 1 <= week <= LAST:
            raise RecurrenceError(
                f"monthly_week_of_month must be 1..4, {SECOND_TO_LAST} (2nd last) "
                f"or {LAST} (last); got {week}."
            )
        _check_weekday(self.monthly_day_of_week, "monthly_day_of_week")

    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None and self.count is None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RecurrenceSpec:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise RecurrenceError(f"Unknown recurrence fields: {', '.join(unknown)}.")
        try:
            return cls(**data)
        except TypeError as exc:
            raise RecurrenceError(str(exc)) from exc


def _ordinal(n: int) -> str:
    if n % 100 in (11, 12, 13):
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def describe(spec: RecurrenceSpec) -> str:
    """Human-readable summary, e.g. ``"Every 2 weeks on Monday"``."""
    n = spec.interval
    count = "" if n == 1 else f"{n} "
    plural = "s" if n > 1 else ""

    if spec.type is RecurrenceType.DAILY:
        return f"Every {count}day{plural}"
    if spec.type is RecurrenceType.WEEKLY:
        return f"Every {count}week{plural} on {DAY_NAMES[spec.weekly_day_of_week]}"
    if spec.monthly_pattern is MonthlyPattern.DATE:
        return f"Every {count}month{plural} on the {_ordinal(spec.monthly_date)}"
    week = WEEK_OF_MONTH_NAMES[spec.monthly_week_of_month]
    return f"Every {count}month{plural} on the {week} {DAY_NAMES[spec.monthly_day_of_week]}"
