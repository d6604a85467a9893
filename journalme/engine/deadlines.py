"""
Deadline arithmetic for monthly obligations.

All functions take "today" explicitly; nothing here reads the clock.
"""

import calendar
from datetime import date, timedelta
from typing import Optional


def days_in_month(day: date) -> int:
    """Number of days in the calendar month containing ``day``."""
    return calendar.monthrange(day.year, day.month)[1]


def days_until(day_of_month: int, today: date) -> int:
    """
    Days left to fund a bill due on ``day_of_month``.

    Counts today and the due day itself, so a bill due today yields 1.
    Once the day has passed this month the deadline rolls to next month.
    """
    assert 1 <= day_of_month <= 31, f"day_of_month out of range: {day_of_month}"

    if today.day <= day_of_month:
        return day_of_month - today.day + 1
    return (days_in_month(today) - today.day) + day_of_month + 1


def deadline_date(day_of_month: int, today: date) -> date:
    """Calendar date of the deadline counted by ``days_until``."""
    return today + timedelta(days=days_until(day_of_month, today) - 1)


def has_day_changed(last_run: Optional[date], today: date) -> bool:
    """True when a day-boundary job has not yet run for ``today``."""
    return last_run != today
