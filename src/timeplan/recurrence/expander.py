from __future__ import annotations

import logging
from datetime import date, timedelta
from itertools import islice, takewhile
from typing import Iterable, Iterator, Optional, Sequence

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta
from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule

from timeplan.calendar import LAST, SECOND_TO_LAST, weekday_of_month_delta
from timeplan.milestones import Draft, Milestone, Project
from timeplan.recurrence.spec import MonthlyPattern, RecurrenceSpec, RecurrenceType

logger = logging.getLogger(__name__)

_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)
_FREQUENCIES = {
    RecurrenceType.DAILY: DAILY,
    RecurrenceType.WEEKLY: WEEKLY,
    RecurrenceType.MONTHLY: MONTHLY,
}


# ── occurrence stepping ──────────────────────────────────────────────────

def _month_delta(spec: RecurrenceSpec) -> relativedelta:
    """Moves any day of a month onto the recurrence's day in that month."""
    if spec.monthly_pattern is MonthlyPattern.DATE:
        return relativedelta(day=spec.monthly_date)
    return weekday_of_month_delta(spec.monthly_week_of_month, spec.monthly_day_of_week)


def first_occurrence(spec: RecurrenceSpec, after: date) -> date:
    """Earliest occurrence strictly after ``after``."""
    if spec.type is RecurrenceType.DAILY:
        return after + relativedelta(days=spec.interval)
    if spec.type is RecurrenceType.WEEKLY:
        return after + relativedelta(days=1, weekday=_WEEKDAYS[spec.weekly_day_of_week])

    delta = _month_delta(spec)
    candidate = after + delta
    if candidate <= after:
        candidate = after + relativedelta(months=1) + delta
    return candidate


def next_occurrence(spec: RecurrenceSpec, current: date) -> date:
    """Occurrence that follows ``current`` in the series."""
    if spec.type is RecurrenceType.DAILY:
        return current + relativedelta(days=spec.interval)
    if spec.type is RecurrenceType.WEEKLY:
        return current + relativedelta(weeks=spec.interval)
    # The day is re-resolved from the recurrence each month, so clamping a 31st
    # into a short month never drifts later occurrences.
    return current + relativedelta(months=spec.interval) + _month_delta(spec)


def _rrule_for(spec: RecurrenceSpec, first: date) -> rrule:
    if spec.type is not RecurrenceType.MONTHLY:
        return rrule(_FREQUENCIES[spec.type], interval=spec.interval, dtstart=first)
    week = spec.monthly_week_of_month
    nth = {LAST: -1, SECOND_TO_LAST: -2}.get(week, week)
    return rrule(
        MONTHLY,
        interval=spec.interval,
        dtstart=first,
        byweekday=_WEEKDAYS[spec.monthly_day_of_week](nth),
    )


def iter_occurrences(spec: RecurrenceSpec, after: date) -> Iterator[date]:
    """Unbounded series of occurrences strictly after ``after``."""
    current = first_occurrence(spec, after)
    if spec.type is not RecurrenceType.MONTHLY or spec.monthly_pattern is MonthlyPattern.DAY_OF_WEEK:
        for occurrence in _rrule_for(spec, current):
            yield occurrence.date()
        return
    # rrule skips months too short for a day-of-month; these clamp instead.
    while True:
        yield current
        current = next_occurrence(spec, current)


# ── expander ─────────────────────────────────────────────────────────────

class RecurrenceExpander:
    """
    Turns a ``RecurrenceSpec`` into a bounded, ordered list of dates.

    Every call is bounded: by the window end, the recurrence's own end date or
    count, and a safety cap.  Open-ended series (no window end, no end date
    and no count) get a one-year look-ahead and a small cap; callers
    extend them later with ``ensure_available``.
    """

    _SAFETY_CAP: int = 100
    _HARD_CAP: int = 1000
    _OPEN_ENDED_CAP: int = 10
    _LOOK_AHEAD_DAYS: int = 365
    _BATCH_SIZE: int = 20
    _EXCESSIVE_THRESHOLD: int = 50

    def __init__(
        self,
        safety_cap: Optional[int] = None,
        open_ended_cap: Optional[int] = None,
        look_ahead_days: Optional[int] = None,
        batch_size: Optional[int] = None,
        hard_cap: Optional[int] = None,
        excessive_threshold: Optional[int] = None,
    ) -> None:
        self._safety_cap = self._positive(safety_cap, self._SAFETY_CAP, "safety_cap")
        self._open_ended_cap = self._positive(open_ended_cap, self._OPEN_ENDED_CAP, "open_ended_cap")
        self._look_ahead = timedelta(
            days=self._positive(look_ahead_days, self._LOOK_AHEAD_DAYS, "look_ahead_days")
        )
        self._batch_size = self._positive(batch_size, self._BATCH_SIZE, "batch_size")
        self._hard_cap = self._positive(hard_cap, self._HARD_CAP, "hard_cap")
        self._excessive_threshold = self._positive(
            excessive_threshold, self._EXCESSIVE_THRESHOLD, "excessive_threshold"
        )

    @staticmethod
    def _positive(value: Optional[int], default: int, name: str) -> int:
        if value is None:
            return default
        if value < 1:
            raise ValueError(f"{name} must be at least 1; got {value}.")
        return int(value)

    def _limit(self, cap: Optional[int], default: int) -> int:
        limit = default if cap is None else self._positive(cap, default, "cap")
        return min(limit, self._hard_cap)

    # ── expansion ────────────────────────────────────────────────────────

    def _take(
        self,
        spec: RecurrenceSpec,
        window_start: date,
        window_end: date,
        limit: int,
        warn: bool,
    ) -> list[date]:
        wanted = limit if spec.count is None else min(limit, spec.count)
        in_window = takewhile(lambda d: d <= window_end, iter_occurrences(spec, window_start))
        occurrences = list(islice(in_window, wanted))

        capped = len(occurrences) == limit and (spec.count is None or spec.count > limit)
        if capped and warn and next_occurrence(spec, occurrences[-1]) <= window_end:
            logger.warning(
                "Recurrence %s truncated at %d occurrences before %s",
                spec.id, limit, window_end,
            )

        logger.debug(
            "Expanded recurrence %s over (%s, %s]: %d occurrences",
            spec.id, window_start, window_end, len(occurrences),
        )
        return occurrences

    def expand(
        self,
        spec: RecurrenceSpec,
        window_start: date,
        window_end: Optional[date] = None,
        cap: Optional[int] = None,
    ) -> list[date]:
        open_ended = window_end is None and spec.is_open_ended
        if window_end is None:
            if spec.end_date is not None:
                window_end = spec.end_date
            elif spec.count is not None:
                window_end = date.max
            else:
                window_end = window_start + self._look_ahead
        elif spec.end_date is not None:
            window_end = min(window_end, spec.end_date)

        limit = self._limit(cap, self._open_ended_cap if open_ended else self._safety_cap)
        return self._take(spec, window_start, window_end, limit, warn=not open_ended)

    def expand_for_project(
        self,
        spec: RecurrenceSpec,
        project: Project,
        cap: Optional[int] = None,
    ) -> list[date]:
        """
        Occurrences after the project start.  A continuous project (or one
        without an end date) always gets the look-ahead window and the small
        open-ended cap, whatever ``count`` or ``end_date`` the recurrence
        carries; later occurrences come from ``ensure_available``.
        """
        if not (project.continuous or project.end_date is None):
            return self.expand(spec, project.start_date, project.end_date, cap)

        window_end = project.start_date + self._look_ahead
        if spec.end_date is not None:
            window_end = min(window_end, spec.end_date)
        limit = self._limit(cap, self._open_ended_cap)
        return self._take(spec, project.start_date, window_end, limit, warn=False)

    def ensure_available(
        self,
        spec: RecurrenceSpec,
        last_generated: date,
        target_date: date,
        generated: int = 0,
        cap: Optional[int] = None,
    ) -> list[date]:
        """
        Occurrences in ``(last_generated, target_date]`` that are still missing.

        ``last_generated`` is the latest occurrence the caller already holds
        and ``generated`` how many it holds, so that a ``count`` bound keeps
        holding across calls.  At most one batch is returned per call; a
        window that is already covered yields nothing.
        """
        limit = self._limit(cap, self._batch_size)
        if spec.count is not None:
            limit = min(limit, spec.count - generated)
        end = target_date if spec.end_date is None else min(target_date, spec.end_date)
        if limit <= 0 or end <= last_generated:
            return []

        missing: list[date] = []
        current = next_occurrence(spec, last_generated)
        while current <= end and len(missing) < limit:
            missing.append(current)
            current = next_occurrence(spec, current)

        logger.debug(
            "Recurrence %s extended from %s towards %s: %d new occurrences",
            spec.id, last_generated, target_date, len(missing),
        )
        return missing

    # ── materialisation ──────────────────────────────────────────────────

    def materialize(
        self,
        spec: RecurrenceSpec,
        dates: Sequence[date],
        start_index: int = 1,
        project_id: Optional[str] = None,
    ) -> list[Draft]:
        if start_index < 1:
            raise ValueError(f"start_index is 1-based; got {start_index}.")
        owner = project_id if project_id is not None else spec.project_id
        return [
            Draft(
                id=f"{spec.id}-{index}",
                name=f"{spec.name} {index}",
                due_date=due,
                time_allocation_hours=spec.time_allocation_hours,
                project_id=owner,
                order=index - 1,
                source_spec_id=spec.id,
            )
            for index, due in enumerate(dates, start=start_index)
        ]

    # ── estimates ────────────────────────────────────────────────────────

    def has_excessive_occurrences(
        self,
        spec: RecurrenceSpec,
        project: Project,
        threshold: Optional[int] = None,
    ) -> bool:
        limit = self._positive(threshold, self._excessive_threshold, "threshold")
        return len(self.expand_for_project(spec, project, cap=limit)) >= limit

    @property
    def safety_cap(self) -> int:
        return self._safety_cap

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def __repr__(self) -> str:
        return (
            f"RecurrenceExpander(safety_cap={self._safety_cap}, "
            f"open_ended_cap={self._open_ended_cap}, "
            f"look_ahead_days={self._look_ahead.days}, "
            f"batch_size={self._batch_size})"
        )


def estimate_occurrence_count(spec: RecurrenceSpec, duration_days: int) -> int:
    """Quick count estimate for previews, without generating dates."""
    period = {
        RecurrenceType.DAILY: 1,
        RecurrenceType.WEEKLY: 7,
        RecurrenceType.MONTHLY: 30,
    }[spec.type] * spec.interval
    estimate = max(duration_days, 0) // period
    return estimate if spec.count is None else min(estimate, spec.count)


def generated_from(milestones: Iterable[Milestone], spec_id: str) -> list[Milestone]:
    """Milestones produced by the given recurrence, in due-date order."""
    return sorted(
        (m for m in milestones if m.source_spec_id == spec_id),
        key=lambda m: m.due_date,
    )
