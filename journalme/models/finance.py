"""
Finance Data Models for JournalMe

These models define the strict schemas for everything the liquidity
engine consumes and produces. They are designed to:
1. Reject malformed amounts and days at the point of entry
2. Keep money as Decimal end to end (no float drift)
3. Be serializable for the local database and backups

DESIGN DECISION: Validation lives here, not in the engine.
The engine assumes every model it receives was constructed successfully.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# USER-EDITABLE RECORDS
# =============================================================================

class RecurringObligation(BaseModel):
    """
    A bill that recurs every calendar month on a fixed day ("jail").

    Only the current definition exists; editing replaces it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    label: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="What the bill is for (e.g., Rent, EMI)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount due every month"
    )
    day_of_month: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day of the month the bill is due"
    )


class DebtTracker(BaseModel):
    """
    Long-term debt being paid down (credit card, personal loan).

    DESIGN DECISION: Debts only feed the net position.
    They are deliberately kept out of the daily budget deadline logic.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    label: str = Field(..., min_length=1, max_length=100)
    total_owed: Decimal = Field(
        ...,
        gt=0,
        description="Total amount owed when tracking started"
    )
    amount_paid: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Amount repaid so far"
    )

    @property
    def remaining(self) -> Decimal:
        """Amount still owed."""
        return self.total_owed - self.amount_paid

    @property
    def progress(self) -> float:
        """Fraction repaid, capped at 1.0 for overpaid trackers."""
        return min(float(self.amount_paid / self.total_owed), 1.0)


class ExpectedIncome(BaseModel):
    """
    A promise of future cash.

    Income without an expected date is "future pipeline" and never
    counts toward any deadline.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    label: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    expected_date: Optional[date] = Field(
        default=None,
        description="When the money is expected to arrive"
    )


class CashBalance(BaseModel):
    """The single liquid cash figure. May go negative."""

    total: Decimal = Field(default=Decimal("0"))


class SpendItem(BaseModel):
    """One discretionary spend logged today."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    label: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    logged_at: datetime = Field(default_factory=datetime.now)


class DailySpendState(BaseModel):
    """
    Today's spend log.

    DESIGN DECISION: daily_spent is derived from spend_list rather than
    stored next to it, so the two can never disagree.
    """

    day: Optional[date] = Field(
        default=None,
        description="Calendar day this log belongs to"
    )
    spend_list: list[SpendItem] = Field(default_factory=list)

    @property
    def daily_spent(self) -> Decimal:
        """Total spent today."""
        return sum((item.amount for item in self.spend_list), Decimal("0"))


# =============================================================================
# ENGINE OUTPUT
# =============================================================================

class ObligationSchedule(BaseModel):
    """How one obligation looks from today."""

    obligation: RecurringObligation
    days_until: int = Field(
        ...,
        ge=1,
        description="Days left including today and the due day"
    )
    due_date: date
    daily_cost: Decimal = Field(
        ...,
        description="Whole-unit amount to set aside per day (rounded up)"
    )
    eligible_income: Decimal = Field(
        ...,
        description="Expected income arriving on or before due_date"
    )
    surplus: Decimal = Field(
        ...,
        description="balance + eligible_income - amount"
    )
    is_short: bool


class LiquidityReport(BaseModel):
    """
    Result of one run of the liquidity engine.

    CRITICAL: This is a derived snapshot. It is never persisted;
    it is recomputed from scratch whenever an input changes.
    """

    as_of: date
    balance: Decimal

    # Deadlines
    schedules: list[ObligationSchedule] = Field(
        default_factory=list,
        description="All obligations, nearest deadline first"
    )
    next_obligation: Optional[ObligationSchedule] = None
    total_daily_set_aside: Decimal = Decimal("0")

    # Income
    eligible_income_nearest: Decimal = Decimal("0")
    eligible_income_following: Optional[Decimal] = Field(
        default=None,
        description="Income eligible by the second distinct deadline, if any"
    )
    pipeline_income: Decimal = Field(
        default=Decimal("0"),
        description="Undated income or income after every tracked deadline"
    )

    # Budget
    is_liquidity_short: bool = False
    daily_survival_budget: Decimal = Decimal("0")
    daily_spent: Decimal = Decimal("0")
    remaining_survival_today: Decimal = Decimal("0")

    # Position
    total_debt_remaining: Decimal = Decimal("0")
    net_position: Decimal = Decimal("0")

    @property
    def short_obligations(self) -> list[ObligationSchedule]:
        """Obligations that cannot be met by their own deadline."""
        return [s for s in self.schedules if s.is_short]

    @property
    def worst_shortfall(self) -> Decimal:
        """Largest amount missing for any single deadline (0 if none)."""
        if not self.short_obligations:
            return Decimal("0")
        return -min(s.surplus for s in self.short_obligations)


# =============================================================================
# ENGINE INPUT
# =============================================================================

class FinanceSnapshot(BaseModel):
    """Everything the liquidity engine reads, captured in one consistent read."""

    balance: CashBalance = Field(default_factory=CashBalance)
    obligations: list[RecurringObligation] = Field(default_factory=list)
    debts: list[DebtTracker] = Field(default_factory=list)
    expected_income: list[ExpectedIncome] = Field(default_factory=list)
    spend_state: DailySpendState = Field(default_factory=DailySpendState)
