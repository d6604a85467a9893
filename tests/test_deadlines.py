"""
Tests for deadline arithmetic.

Covers every due day against months of every length, including leap
and non-leap February.
"""

from datetime import date, timedelta

import pytest

from journalme.engine import days_in_month, days_until, deadline_date, has_day_changed


# One month of each length
SAMPLE_MONTHS = [date(2023, 2, 1), date(2024, 2, 1), date(2024, 6, 1), date(2024, 7, 1)]


def each_day(first: date):
    for offset in range(days_in_month(first)):
        yield first + timedelta(days=offset)


class TestDaysInMonth:

    @pytest.mark.parametrize("day, expected", [
        (date(2023, 2, 10), 28),
        (date(2024, 2, 10), 29),
        (date(2024, 6, 10), 30),
        (date(2024, 12, 31), 31),
    ])
    def test_month_lengths(self, day, expected):
        assert days_in_month(day) == expected


class TestDaysUntil:
    """Tests for the days-left count."""

    def test_worked_example(self):
        """Bill on the 11th, today the 5th of a 30-day month: 7 days."""
        assert days_until(11, date(2024, 6, 5)) == 7

    def test_due_today_counts_as_one_day(self):
        assert days_until(5, date(2024, 6, 5)) == 1

    def test_always_at_least_one(self):
        for month in SAMPLE_MONTHS:
            for today in each_day(month):
                for target in range(1, 32):
                    assert days_until(target, today) >= 1

    def test_never_more_than_31(self):
        for month in SAMPLE_MONTHS:
            for today in each_day(month):
                for target in range(1, 32):
                    assert days_until(target, today) <= 31

    def test_decreases_by_one_each_day_before_the_due_day(self):
        target = 20
        previous = None
        for today in each_day(date(2024, 6, 1)):
            if today.day > target:
                break
            current = days_until(target, today)
            if previous is not None:
                assert current == previous - 1
            previous = current
        assert previous == 1

    def test_rolls_over_after_due_day(self):
        """Day after the 11th: the next deadline is 11 July."""
        assert days_until(11, date(2024, 6, 12)) == 30

    def test_rollover_through_leap_february(self):
        assert days_until(5, date(2024, 2, 20)) == 15

    def test_rollover_through_non_leap_february(self):
        assert days_until(5, date(2023, 2, 20)) == 14

    def test_day_31_in_30_day_month(self):
        assert days_until(31, date(2024, 6, 5)) == 27

    @pytest.mark.parametrize("bad_day", [0, 32, -1])
    def test_rejects_out_of_range_day(self, bad_day):
        with pytest.raises(AssertionError):
            days_until(bad_day, date(2024, 6, 5))


class TestDeadlineDate:

    def test_same_month(self):
        assert deadline_date(11, date(2024, 6, 5)) == date(2024, 6, 11)

    def test_next_month(self):
        assert deadline_date(11, date(2024, 6, 12)) == date(2024, 7, 11)

    def test_year_end(self):
        assert deadline_date(3, date(2024, 12, 20)) == date(2025, 1, 3)

    def test_day_31_spills_past_short_month(self):
        assert deadline_date(31, date(2024, 6, 5)) == date(2024, 7, 1)

    def test_consistent_with_days_until(self):
        for today in each_day(date(2024, 2, 1)):
            for target in range(1, 32):
                due = deadline_date(target, today)
                assert (due - today).days + 1 == days_until(target, today)


class TestHasDayChanged:

    def test_never_run(self):
        assert has_day_changed(None, date(2024, 6, 5)) is True

    def test_same_day(self):
        assert has_day_changed(date(2024, 6, 5), date(2024, 6, 5)) is False

    def test_next_day(self):
        assert has_day_changed(date(2024, 6, 5), date(2024, 6, 6)) is True

    def test_clock_moved_back(self):
        assert has_day_changed(date(2024, 6, 5), date(2024, 6, 4)) is True
