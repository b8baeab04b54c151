"""
tests/calendar/test_calendar.py

Covers:
  - Day differences (scalar and NumPy arrays)
  - Business-day stepping across weekends and holidays
  - Business-day counting
  - Holiday expansion and BusinessCalendar holiday management
  - Month stepping and day clamping
  - n-th weekday of month, including "last" and "second-to-last"
  - TimeInterval invariant and the inclusive overlap convention
"""

from datetime import date, datetime

import numpy as np
import pytest
from dateutil.relativedelta import relativedelta

from timeplan.calendar import (
    LAST,
    SECOND_TO_LAST,
    BusinessCalendar,
    CalendarError,
    IntervalError,
    TimeInterval,
    add_business_days,
    add_days,
    add_months,
    clamp_day,
    count_business_days,
    day_difference,
    days_in_month,
    expand_holidays,
    intervals_overlap,
    is_business_day,
    is_weekend,
    nth_weekday_of_month,
    overlap_mask,
    weekday_of_month_delta,
)

MONDAY, FRIDAY, SUNDAY = 0, 4, 6


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def work_week():
    """Standard Mon–Fri calendar, no holidays."""
    return BusinessCalendar()


@pytest.fixture
def new_year_week():
    """Mon–Fri with Mon 6 .. Wed 8 January 2025 off."""
    return BusinessCalendar(holidays=[(date(2025, 1, 6), date(2025, 1, 8))])


# ── Day differences ───────────────────────────────────────────────────────────

class TestDayDifference:

    def test_forward(self):
        assert day_difference(date(2025, 1, 1), date(2025, 1, 31)) == 30

    def test_backward_is_negative(self):
        assert day_difference(date(2025, 1, 31), date(2025, 1, 1)) == -30

    def test_same_day(self):
        assert day_difference(date(2025, 3, 3), date(2025, 3, 3)) == 0

    def test_across_leap_day(self):
        assert day_difference(date(2024, 2, 28), date(2024, 3, 1)) == 2

    def test_datetime_is_truncated_to_day(self):
        assert day_difference(datetime(2025, 1, 1, 23, 59), date(2025, 1, 2)) == 1

    def test_returns_int_for_scalars(self):
        assert isinstance(day_difference(date(2025, 1, 1), date(2025, 1, 2)), int)

    def test_array_input(self):
        starts = np.array(["2025-01-01", "2025-02-01"], dtype="datetime64[D]")
        ends = np.array(["2025-01-11", "2025-03-01"], dtype="datetime64[D]")
        np.testing.assert_array_equal(day_difference(starts, ends), [10, 28])

    def test_add_days(self):
        assert add_days(date(2025, 1, 31), 1) == date(2025, 2, 1)
        assert add_days(date(2025, 3, 1), -1) == date(2025, 2, 28)


# ── Business-day stepping ─────────────────────────────────────────────────────

class TestAddBusinessDays:

    def test_friday_plus_one_is_monday(self):
        assert add_business_days(date(2025, 1, 3), 1) == date(2025, 1, 6)

    def test_full_week(self):
        assert add_business_days(date(2025, 1, 6), 5) == date(2025, 1, 13)

    def test_saturday_plus_one_is_monday(self):
        assert add_business_days(date(2025, 1, 4), 1) == date(2025, 1, 6)

    def test_zero_on_weekend_rolls_forward(self):
        assert add_business_days(date(2025, 1, 5), 0) == date(2025, 1, 6)

    def test_zero_on_working_day_is_identity(self):
        assert add_business_days(date(2025, 1, 7), 0) == date(2025, 1, 7)

    def test_negative_steps_back_over_weekend(self):
        assert add_business_days(date(2025, 1, 6), -1) == date(2025, 1, 3)

    def test_negative_from_weekend(self):
        assert add_business_days(date(2025, 1, 4), -1) == date(2025, 1, 3)

    def test_single_holiday_skipped(self):
        result = add_business_days(date(2025, 1, 3), 1, holidays=[date(2025, 1, 6)])
        assert result == date(2025, 1, 7)

    def test_holiday_interval_skipped(self):
        holidays = [TimeInterval(date(2025, 1, 6), date(2025, 1, 8))]
        assert add_business_days(date(2025, 1, 3), 1, holidays=holidays) == date(2025, 1, 9)

    def test_calendar_with_holiday_range(self, new_year_week):
        assert new_year_week.add_business_days(date(2025, 1, 3), 2) == date(2025, 1, 10)

    def test_returns_date_for_scalars(self, work_week):
        assert type(work_week.add_business_days(date(2025, 1, 3), 1)) is date

    def test_array_input(self, work_week):
        starts = np.array(["2025-01-03", "2025-01-06"], dtype="datetime64[D]")
        result = work_week.add_business_days(starts, 1)
        expected = np.array(["2025-01-06", "2025-01-07"], dtype="datetime64[D]")
        np.testing.assert_array_equal(result, expected)

    def test_broadcast_offsets(self, work_week):
        result = work_week.add_business_days(date(2025, 1, 6), np.array([0, 4, 5, -1]))
        expected = np.array(
            ["2025-01-06", "2025-01-10", "2025-01-13", "2025-01-03"], dtype="datetime64[D]"
        )
        np.testing.assert_array_equal(result, expected)

    def test_result_is_always_a_business_day(self, new_year_week):
        rng = np.random.default_rng(3)
        base = np.datetime64("2025-01-01")
        starts = base + rng.integers(0, 60, size=40)
        steps = rng.integers(1, 15, size=40)
        result = new_year_week.add_business_days(starts, steps)
        assert np.all(new_year_week.is_business_day(result))
        assert np.all(result > starts)


# ── Business-day counting ─────────────────────────────────────────────────────

class TestCountBusinessDays:

    def test_one_week(self):
        assert count_business_days(date(2025, 1, 6), date(2025, 1, 13)) == 5

    def test_end_is_exclusive(self):
        assert count_business_days(date(2025, 1, 6), date(2025, 1, 7)) == 1

    def test_with_holiday(self):
        holidays = [date(2025, 1, 8)]
        assert count_business_days(date(2025, 1, 6), date(2025, 1, 13), holidays) == 4

    def test_weekend_holiday_not_double_counted(self):
        holidays = [date(2025, 1, 11)]
        assert count_business_days(date(2025, 1, 6), date(2025, 1, 13), holidays) == 5

    def test_reverse_range_is_negative(self):
        assert count_business_days(date(2025, 1, 13), date(2025, 1, 6)) == -5

    def test_is_business_day(self):
        assert is_business_day(date(2025, 1, 6))
        assert not is_business_day(date(2025, 1, 4))
        assert not is_business_day(date(2025, 1, 6), holidays=[date(2025, 1, 6)])

    def test_is_weekend(self):
        assert is_weekend(date(2025, 1, 4))
        assert is_weekend(date(2025, 1, 5))
        assert not is_weekend(date(2025, 1, 3))


# ── Holidays ──────────────────────────────────────────────────────────────────

class TestHolidays:

    def test_expand_mixed_inputs_sorted_and_unique(self):
        result = expand_holidays([
            date(2025, 1, 8),
            (date(2025, 1, 6), date(2025, 1, 7)),
            TimeInterval(date(2025, 1, 7), date(2025, 1, 9)),
        ])
        expected = np.arange("2025-01-06", "2025-01-10", dtype="datetime64[D]")
        np.testing.assert_array_equal(result, expected)

    def test_expand_empty(self):
        assert expand_holidays([]).size == 0

    def test_reversed_range_raises(self):
        with pytest.raises(CalendarError):
            expand_holidays([(date(2025, 1, 9), date(2025, 1, 6))])

    def test_add_holiday(self, work_week):
        work_week.add_holiday(date(2025, 1, 6))
        assert work_week.add_business_days(date(2025, 1, 3), 1) == date(2025, 1, 7)

    def test_remove_holiday_restores(self, new_year_week):
        new_year_week.remove_holiday((date(2025, 1, 6), date(2025, 1, 8)))
        assert new_year_week.add_business_days(date(2025, 1, 3), 1) == date(2025, 1, 6)
        assert new_year_week.holidays == []

    def test_remove_unknown_holiday_is_noop(self, new_year_week):
        new_year_week.remove_holiday(date(2030, 1, 1))
        assert len(new_year_week.holidays) == 3

    def test_holidays_property(self, new_year_week):
        assert new_year_week.holidays == [date(2025, 1, 6), date(2025, 1, 7), date(2025, 1, 8)]

    def test_repr(self, new_year_week):
        r = repr(new_year_week)
        assert "weekmask='1111100'" in r
        assert "holidays=3" in r


# ── Weekmask ──────────────────────────────────────────────────────────────────

class TestWeekmask:

    def test_default_weekmask(self, work_week):
        assert work_week.weekmask == [1, 1, 1, 1, 1, 0, 0]

    def test_six_day_week(self):
        cal = BusinessCalendar([1, 1, 1, 1, 1, 1, 0])
        assert cal.add_business_days(date(2025, 1, 3), 1) == date(2025, 1, 4)

    def test_wrong_length_raises(self):
        with pytest.raises(CalendarError):
            BusinessCalendar([1, 1, 1])

    def test_non_binary_entry_raises(self):
        with pytest.raises(CalendarError):
            BusinessCalendar([1, 1, 1, 1, 1, 0, 2])

    def test_no_working_days_raises(self):
        with pytest.raises(CalendarError):
            BusinessCalendar([0] * 7)


# ── Month arithmetic ──────────────────────────────────────────────────────────

class TestMonthArithmetic:

    def test_days_in_month(self):
        assert days_in_month(2025, 2) == 28
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2025, 12) == 31

    def test_invalid_month_raises(self):
        with pytest.raises(CalendarError):
            days_in_month(2025, 13)

    def test_add_months_wraps_year(self):
        assert add_months(2025, 11, 3) == (2026, 2)
        assert add_months(2025, 1, -1) == (2024, 12)
        assert add_months(2025, 1, 0) == (2025, 1)

    def test_clamp_day(self):
        assert clamp_day(2025, 2, 31) == date(2025, 2, 28)
        assert clamp_day(2024, 2, 31) == date(2024, 2, 29)
        assert clamp_day(2025, 4, 15) == date(2025, 4, 15)

    def test_clamp_day_rejects_zero(self):
        with pytest.raises(CalendarError):
            clamp_day(2025, 1, 0)

    def test_clamp_day_rejects_invalid_month(self):
        with pytest.raises(CalendarError):
            clamp_day(2025, 0, 15)


# ── n-th weekday of month ─────────────────────────────────────────────────────

class TestNthWeekdayOfMonth:

    # January 2025 has four Mondays: 6, 13, 20, 27.
    # March 2025 has five Mondays: 3, 10, 17, 24, 31.

    @pytest.mark.parametrize("week, day", [(1, 6), (2, 13), (3, 20), (4, 27)])
    def test_forward_counts(self, week, day):
        assert nth_weekday_of_month(2025, 1, week, MONDAY) == date(2025, 1, day)

    def test_last_with_four_occurrences_is_fourth(self):
        assert nth_weekday_of_month(2025, 1, LAST, MONDAY) == date(2025, 1, 27)

    def test_second_to_last_with_four_occurrences_is_third(self):
        assert nth_weekday_of_month(2025, 1, SECOND_TO_LAST, MONDAY) == date(2025, 1, 20)

    def test_last_with_five_occurrences(self):
        assert nth_weekday_of_month(2025, 3, LAST, MONDAY) == date(2025, 3, 31)

    def test_second_to_last_with_five_occurrences(self):
        assert nth_weekday_of_month(2025, 3, SECOND_TO_LAST, MONDAY) == date(2025, 3, 24)

    def test_fourth_with_five_occurrences_is_not_last(self):
        assert nth_weekday_of_month(2025, 3, 4, MONDAY) == date(2025, 3, 24)

    def test_last_friday(self):
        assert nth_weekday_of_month(2025, 1, LAST, FRIDAY) == date(2025, 1, 31)

    def test_first_occurrence_on_the_first(self):
        # 1 June 2025 is a Sunday.
        assert nth_weekday_of_month(2025, 6, 1, SUNDAY) == date(2025, 6, 1)

    def test_february_every_weekday_has_four(self):
        for weekday in range(7):
            assert nth_weekday_of_month(2026, 2, LAST, weekday) == nth_weekday_of_month(2026, 2, 4, weekday)

    def test_result_matches_weekday_and_month(self):
        for month in range(1, 13):
            for week in range(1, LAST + 1):
                for weekday in range(7):
                    d = nth_weekday_of_month(2025, month, week, weekday)
                    assert d.weekday() == weekday
                    assert d.month == month

    def test_last_is_within_final_week(self):
        for month in range(1, 13):
            d = nth_weekday_of_month(2025, month, LAST, MONDAY)
            assert days_in_month(2025, month) - d.day < 7

    def test_second_to_last_is_always_a_week_before_last(self):
        # Every month has at least four of each weekday, leap Februaries included.
        for year in range(2024, 2028):
            for month in range(1, 13):
                for weekday in range(7):
                    last = nth_weekday_of_month(year, month, LAST, weekday)
                    second = nth_weekday_of_month(year, month, SECOND_TO_LAST, weekday)
                    assert (last - second).days == 7
                    assert second.month == month

    @pytest.mark.parametrize("day", [1, 15, 28])
    def test_delta_resolves_from_any_day_of_month(self, day):
        delta = weekday_of_month_delta(LAST, FRIDAY)
        assert date(2025, 2, day) + delta == date(2025, 2, 28)

    def test_delta_steps_months(self):
        delta = weekday_of_month_delta(2, MONDAY)
        assert date(2025, 1, 13) + relativedelta(months=2) + delta == date(2025, 3, 10)

    @pytest.mark.parametrize("week", [0, 7, -1])
    def test_invalid_week_raises(self, week):
        with pytest.raises(CalendarError):
            nth_weekday_of_month(2025, 1, week, MONDAY)

    @pytest.mark.parametrize("weekday", [-1, 7])
    def test_invalid_weekday_raises(self, weekday):
        with pytest.raises(CalendarError):
            nth_weekday_of_month(2025, 1, 1, weekday)


# ── Intervals ─────────────────────────────────────────────────────────────────

class TestTimeInterval:

    def test_start_must_precede_end(self):
        with pytest.raises(IntervalError):
            TimeInterval(date(2025, 1, 10), date(2025, 1, 10))
        with pytest.raises(IntervalError):
            TimeInterval(date(2025, 1, 10), date(2025, 1, 1))

    def test_interval_error_is_calendar_error(self):
        with pytest.raises(CalendarError):
            TimeInterval(date(2025, 1, 2), date(2025, 1, 1))

    def test_days(self):
        assert TimeInterval(date(2025, 1, 1), date(2025, 1, 10)).days == 9

    def test_shared_boundary_day_overlaps(self):
        a = TimeInterval(date(2025, 1, 1), date(2025, 1, 10))
        b = TimeInterval(date(2025, 1, 10), date(2025, 1, 20))
        assert a.overlaps(b)
        assert b.overlaps(a)

    def test_adjacent_days_do_not_overlap(self):
        a = TimeInterval(date(2025, 1, 1), date(2025, 1, 9))
        b = TimeInterval(date(2025, 1, 10), date(2025, 1, 20))
        assert not a.overlaps(b)

    def test_containment_overlaps(self):
        assert intervals_overlap(date(2025, 1, 1), date(2025, 1, 31), date(2025, 1, 5), date(2025, 1, 6))

    def test_contains(self):
        interval = TimeInterval(date(2025, 1, 1), date(2025, 1, 10))
        assert interval.contains(date(2025, 1, 1))
        assert interval.contains(date(2025, 1, 10))
        assert not interval.contains(date(2025, 1, 11))

    def test_overlap_mask_matches_scalar_test(self):
        starts = np.array(["2025-01-01", "2025-01-10", "2025-01-11"], dtype="datetime64[D]")
        ends = np.array(["2025-01-05", "2025-01-12", "2025-01-20"], dtype="datetime64[D]")
        mask = overlap_mask(date(2025, 1, 5), date(2025, 1, 10), starts, ends)
        np.testing.assert_array_equal(mask, [True, True, False])
