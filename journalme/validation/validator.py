"""
Input Parsing and Finance Review

DESIGN DECISION: Validation happens in two distinct places:

STAGE 1 - INPUT PARSING (at the point of entry):
- Raw text from a form becomes a Decimal, a day number or a date
- Anything malformed raises InvalidInputError immediately
- Model construction (pydantic) then enforces ranges

STAGE 2 - FINANCE REVIEW (over stored data):
- Overpaid debts
- Bills on days the current month doesn't have
- Income that was expected in the past and never cleared
- Duplicate bill names
- This catches data that is valid but probably not what the user meant

IMPORTANT: Review NEVER fixes anything.
It reports issues for the user to act on.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from pydantic import BaseModel, Field

from journalme.engine import days_in_month, deadline_date
from journalme.models.finance import FinanceSnapshot


class InvalidInputError(ValueError):
    """Raw user input could not be parsed."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class ValidationIssue(BaseModel):
    """A single review finding."""

    field: str = Field(
        ...,
        description="What the issue is about (e.g., 'debt', 'obligation')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'overpaid', 'short_month', 'overdue')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


RawNumber = Union[str, int, float, Decimal]


def parse_amount(
    raw: RawNumber,
    field: str = "amount",
    allow_zero: bool = False,
    allow_negative: bool = False,
) -> Decimal:
    """
    Parse a money amount typed by the user.

    Accepts thousands separators ("1,500.50"). Rejects blanks, words,
    NaN and infinity.
    """
    text = str(raw).strip().replace(",", "")
    if not text:
        raise InvalidInputError(field, "is required")

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidInputError(field, f"'{raw}' is not a number")

    if not value.is_finite():
        raise InvalidInputError(field, f"'{raw}' is not a finite number")
    if value < 0 and not allow_negative:
        raise InvalidInputError(field, "cannot be negative")
    if value == 0 and not allow_zero:
        raise InvalidInputError(field, "must be greater than zero")

    return value


def parse_day_of_month(raw: RawNumber, field: str = "day_of_month") -> int:
    """Parse a due day (1-31)."""
    text = str(raw).strip()
    try:
        day = int(text)
    except ValueError:
        raise InvalidInputError(field, f"'{raw}' is not a whole number")

    if not 1 <= day <= 31:
        raise InvalidInputError(field, "must be between 1 and 31")
    return day


def parse_date(raw: Optional[str], field: str = "date", required: bool = False) -> Optional[date]:
    """Parse an ISO date (YYYY-MM-DD). Blank means "no date" unless required."""
    text = (raw or "").strip()
    if not text:
        if required:
            raise InvalidInputError(field, "is required")
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidInputError(field, f"'{raw}' is not a date (use YYYY-MM-DD)")


class FinanceValidator:
    """Reviews a finance snapshot for suspicious but valid data."""

    def review(self, snapshot: FinanceSnapshot, today: date) -> list[ValidationIssue]:
        """
        Run every check.

        Args:
            snapshot: Current finance data
            today: Day to review against

        Returns:
            All issues found (possibly empty)
        """
        issues = []

        if snapshot.balance.total < 0:
            issues.append(ValidationIssue(
                field="balance",
                issue_type="negative",
                message=f"Balance is negative ({snapshot.balance.total:,.2f})",
                severity="warning",
                suggested_fix="Every bill will show as short until cash comes in",
            ))

        for debt in snapshot.debts:
            if debt.amount_paid > debt.total_owed:
                issues.append(ValidationIssue(
                    field="debt",
                    issue_type="overpaid",
                    message=(
                        f"{debt.label}: paid {debt.amount_paid:,.2f} "
                        f"of {debt.total_owed:,.2f}"
                    ),
                    severity="warning",
                    suggested_fix="Check the logged payments or remove the tracker",
                ))

        month_length = days_in_month(today)
        seen_labels = set()
        for obligation in snapshot.obligations:
            if obligation.day_of_month > month_length:
                due = deadline_date(obligation.day_of_month, today)
                issues.append(ValidationIssue(
                    field="obligation",
                    issue_type="short_month",
                    message=(
                        f"{obligation.label} is due on day {obligation.day_of_month}, "
                        f"which this month doesn't have; counting to {due.isoformat()}"
                    ),
                    severity="info",
                ))

            key = obligation.label.lower()
            if key in seen_labels:
                issues.append(ValidationIssue(
                    field="obligation",
                    issue_type="duplicate",
                    message=f"More than one bill is called '{obligation.label}'",
                    severity="warning",
                    suggested_fix="Delete the copy if it was added twice",
                ))
            seen_labels.add(key)

        for income in snapshot.expected_income:
            if income.expected_date is not None and income.expected_date < today:
                issues.append(ValidationIssue(
                    field="income",
                    issue_type="overdue",
                    message=(
                        f"{income.label} was expected on {income.expected_date.isoformat()} "
                        "and is still pending"
                    ),
                    severity="warning",
                    suggested_fix="Clear it if it arrived, or move the date",
                ))

        return issues

    def get_user_friendly_summary(self, issues: list[ValidationIssue]) -> str:
        """
        Generate a user-friendly summary of review results.
        """
        if not issues:
            return "✅ Everything looks consistent."

        lines = ["⚠️ Please check the following:"]
        for issue in issues:
            lines.append(f"   • {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")

        return "\n".join(lines)
