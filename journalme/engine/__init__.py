"""Liquidity engine package."""

from journalme.engine.deadlines import (
    days_in_month,
    days_until,
    deadline_date,
    has_day_changed,
)
from journalme.engine.liquidity import (
    compute_liquidity_report,
    daily_cost,
    eligible_income,
    schedule_obligation,
)

__all__ = [
    "compute_liquidity_report",
    "daily_cost",
    "days_in_month",
    "days_until",
    "deadline_date",
    "eligible_income",
    "has_day_changed",
    "schedule_obligation",
]
