from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from timeplan.calendar._exceptions import CalendarError
from timeplan.calendar.interval import TimeInterval

DateLike = Union[date, "np.datetime64", "np.ndarray"]
HolidayLike = Union[date, Tuple[date, date], TimeInterval]

# Week-of-month codes beyond the forward counts 1..4.
SECOND_TO_LAST: int = 5
LAST: int = 6

_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

_NO_HOLIDAYS = np.array([], dtype="datetime64[D]")


def _as_days(value: DateLike) -> np.ndarray:
    if isinstance(value, datetime):
        value = value.date()
    return np.asarray(value, dtype="datetime64[D]")


def _from_days(value: np.ndarray, scalar: bool) -> date | np.ndarray:
    return value.reshape(-1)[0].item() if scalar else value


def expand_holidays(holidays: Iterable[HolidayLike]) -> np.ndarray:
    """
    Flatten holiday dates, inclusive ``(start, end)`` pairs and
    ``TimeInterval``s into a sorted, de-duplicated ``datetime64[D]`` array.
    """
    chunks: list[np.ndarray] = []
    for holiday in holidays:
        if isinstance(holiday, TimeInterval):
            first, last = holiday.start, holiday.end
        elif isinstance(holiday, tuple):
            first, last = holiday
            if last < first:
                raise CalendarError(
                    f"Holiday range ends before it starts; got {first} .. {last}."
                )
        else:
            first = last = holiday
        lo = _as_days(first)
        chunks.append(np.arange(lo, _as_days(last) + 1, dtype="datetime64[D]"))
    if not chunks:
        return _NO_HOLIDAYS.copy()
    return np.unique(np.concatenate(chunks))


class BusinessCalendar:
    """
    Compiled working-day calendar: a Mon..Sun weekmask plus holiday dates.
    Stepping and counting are delegated to NumPy's business-day routines, so
    dates and ``datetime64`` arrays are accepted everywhere a scalar is.
    """

    _DEFAULT_WEEKMASK: tuple[int, ...] = (1, 1, 1, 1, 1, 0, 0)

    def __init__(
        self,
        weekmask: Optional[Sequence[int]] = None,
        holidays: Optional[Iterable[HolidayLike]] = None,
    ) -> None:
        pattern = list(self._DEFAULT_WEEKMASK if weekmask is None else weekmask)
        if len(pattern) != 7:
            raise CalendarError(f"Weekmask must have 7 entries (Mon..Sun); got {len(pattern)}.")
        for w in pattern:
            if w not in (0, 1):
                raise CalendarError(f"Weekmask entries must be 0 or 1; got {w}.")
        if not any(pattern):
            raise CalendarError("Weekmask has no working days; business days can never be reached.")

        self._weekmask: list[int] = [int(w) for w in pattern]
        self._holidays: np.ndarray = expand_holidays(() if holidays is None else holidays)
        self._compile()

    def _compile(self) -> None:
        self._busdaycal = np.busdaycalendar(
            weekmask=self._weekmask, holidays=self._holidays
        )

    # ── holiday management ───────────────────────────────────────────────

    def add_holiday(self, holiday: HolidayLike) -> None:
        self._holidays = np.union1d(self._holidays, expand_holidays([holiday]))
        self._compile()

    def remove_holiday(self, holiday: HolidayLike) -> None:
        self._holidays = np.setdiff1d(self._holidays, expand_holidays([holiday]))
        self._compile()

    # ── stepping / counting ──────────────────────────────────────────────

    def add_business_days(self, start: DateLike, n: int | np.ndarray) -> date | np.ndarray:
        scalar = np.ndim(start) == 0 and np.ndim(n) == 0
        s = np.atleast_1d(_as_days(start))
        d = np.atleast_1d(np.asarray(n, dtype=np.int64))
        s, d = np.broadcast_arrays(s, d)

        # A non-working start counts from the previous working day when
        # stepping forward and from the next one when stepping backward.
        forward = np.busday_offset(s, d, roll="backward", busdaycal=self._busdaycal)
        backward = np.busday_offset(s, d, roll="forward", busdaycal=self._busdaycal)
        return _from_days(np.where(d > 0, forward, backward), scalar)

    def count_business_days(self, start: DateLike, end: DateLike) -> int | np.ndarray:
        """Working days in ``[start, end)``; negative when ``end < start``."""
        scalar = np.ndim(start) == 0 and np.ndim(end) == 0
        counts = np.busday_count(_as_days(start), _as_days(end), busdaycal=self._busdaycal)
        return int(counts) if scalar else counts

    def is_business_day(self, day: DateLike) -> bool | np.ndarray:
        result = np.is_busday(_as_days(day), busdaycal=self._busdaycal)
        return bool(result) if np.ndim(day) == 0 else result

    # ── properties / repr ────────────────────────────────────────────────

    @property
    def weekmask(self) -> list[int]:
        return list(self._weekmask)

    @property
    def holidays(self) -> list[date]:
        return [d.item() for d in self._holidays]

    def __repr__(self) -> str:
        return (
            f"BusinessCalendar(weekmask={''.join(map(str, self._weekmask))!r}, "
            f"holidays={len(self._holidays)})"
        )


# ── day arithmetic ───────────────────────────────────────────────────────

def day_difference(a: DateLike, b: DateLike) -> int | np.ndarray:
    """Whole days from ``a`` to ``b`` (``b - a``)."""
    scalar = np.ndim(a) == 0 and np.ndim(b) == 0
    diff = (_as_days(b) - _as_days(a)).astype(np.int64)
    return int(diff) if scalar else diff


def add_days(day: date, n: int) -> date:
    return day + timedelta(days=n)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def add_business_days(
    start: DateLike,
    n: int | np.ndarray,
    holidays: Optional[Iterable[HolidayLike]] = None,
) -> date | np.ndarray:
    return BusinessCalendar(holidays=holidays).add_business_days(start, n)


def count_business_days(
    start: DateLike,
    end: DateLike,
    holidays: Optional[Iterable[HolidayLike]] = None,
) -> int | np.ndarray:
    return BusinessCalendar(holidays=holidays).count_business_days(start, end)


def is_business_day(
    day: DateLike,
    holidays: Optional[Iterable[HolidayLike]] = None,
) -> bool | np.ndarray:
    return BusinessCalendar(holidays=holidays).is_business_day(day)


# ── month arithmetic ─────────────────────────────────────────────────────

def _first_of_month(year: int, month: int) -> date:
    try:
        return date(year, month, 1)
    except ValueError as exc:
        raise CalendarError(f"Invalid month {year}-{month}: {exc}.") from exc


def days_in_month(year: int, month: int) -> int:
    return (_first_of_month(year, month) + relativedelta(day=31)).day


def add_months(year: int, month: int, n: int) -> tuple[int, int]:
    shifted = _first_of_month(year, month) + relativedelta(months=n)
    return shifted.year, shifted.month


def clamp_day(year: int, month: int, day: int) -> date:
    """``day`` of the given month, clamped to the month's length."""
    if day < 1:
        raise CalendarError(f"Day of month must be >= 1; got {day}.")
    return _first_of_month(year, month) + relativedelta(day=day)


def weekday_of_month_delta(week_of_month: int, weekday: int) -> relativedelta:
    """
    ``relativedelta`` that moves any day of a month onto its n-th weekday.

    Weeks 1..4 anchor on the 1st and count forward; ``SECOND_TO_LAST`` and
    ``LAST`` anchor on the month's final day and count back.  Added together
    with ``months=``, it steps a series month by month.
    """
    if not 0 <= weekday <= 6:
        raise CalendarError(f"Weekday must be in 0..6 (Mon..Sun); got {weekday}.")
    if not 1 <= week_of_month <= LAST:
        raise CalendarError(f"Week of month must be in 1..{LAST}; got {week_of_month}.")
    if week_of_month == LAST:
        return relativedelta(day=31, weekday=_WEEKDAYS[weekday](-1))
    if week_of_month == SECOND_TO_LAST:
        return relativedelta(day=31, weekday=_WEEKDAYS[weekday](-2))
    return relativedelta(day=1, weekday=_WEEKDAYS[weekday](week_of_month))


def nth_weekday_of_month(year: int, month: int, week_of_month: int, weekday: int) -> date:
    """
    Resolve "the n-th <weekday> of the month".

    ``week_of_month`` 1..4 counts forward from the first occurrence,
    ``SECOND_TO_LAST`` (5) and ``LAST`` (6) count back from the end.

    Every Gregorian month has at least 28 days, so each weekday occurs at
    least four times: weeks 1..4 and the second-to-last always fall inside
    the month and no fallback to the last occurrence is ever needed.
    """
    return _first_of_month(year, month) + weekday_of_month_delta(week_of_month, weekday)
