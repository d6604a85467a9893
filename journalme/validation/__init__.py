"""Input parsing and finance review package."""

from journalme.validation.validator import (
    FinanceValidator,
    InvalidInputError,
    ValidationIssue,
    parse_amount,
    parse_date,
    parse_day_of_month,
)

__all__ = [
    "FinanceValidator",
    "InvalidInputError",
    "ValidationIssue",
    "parse_amount",
    "parse_date",
    "parse_day_of_month",
]
