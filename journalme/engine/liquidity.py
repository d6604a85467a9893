"""
Liquidity Engine

Answers two questions for "today":
1. Can every upcoming monthly obligation be met before its deadline?
2. How much can safely be spent today?

DESIGN DECISION: This is a pure function over a snapshot.
No storage, no clock, no logging. Callers recompute the whole report
whenever any input changes; there is no intermediate state to corrupt.

RULES:
- Each obligation is checked on its own, using only the income that
  arrives on or before that obligation's own due date.
- Liquidity is short if ANY obligation is short.
- Daily set-asides round UP to whole currency units (never under-fund).
- Overspending clamps today's remainder at zero; nothing carries over.
"""

from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from journalme.engine.deadlines import deadline_date, days_until
from journalme.models.finance import (
    DebtTracker,
    ExpectedIncome,
    LiquidityReport,
    ObligationSchedule,
    RecurringObligation,
)


ZERO = Decimal("0")
CENT = Decimal("0.01")
DEFAULT_WINDOW_DAYS = 30


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def daily_cost(amount: Decimal, days: int) -> Decimal:
    """Whole-unit amount to set aside per day so ``amount`` is funded in ``days``."""
    return (amount / Decimal(days)).to_integral_value(rounding=ROUND_CEILING)


def eligible_income(
    expected_income: Iterable[ExpectedIncome],
    deadline: date,
) -> Decimal:
    """Sum of income expected on or before ``deadline``. Undated income never counts."""
    return sum(
        (
            income.amount
            for income in expected_income
            if income.expected_date is not None and income.expected_date <= deadline
        ),
        ZERO,
    )


def schedule_obligation(
    obligation: RecurringObligation,
    today: date,
    balance: Decimal,
    expected_income: list[ExpectedIncome],
) -> ObligationSchedule:
    """Work out the deadline, set-aside and surplus for one obligation."""
    days = days_until(obligation.day_of_month, today)
    due = deadline_date(obligation.day_of_month, today)
    income = eligible_income(expected_income, due)
    surplus = balance + income - obligation.amount

    return ObligationSchedule(
        obligation=obligation,
        days_until=days,
        due_date=due,
        daily_cost=daily_cost(obligation.amount, days),
        eligible_income=income,
        surplus=surplus,
        # A zero-amount bill never makes anything short
        is_short=obligation.amount > ZERO and surplus < ZERO,
    )


def compute_liquidity_report(
    today: date,
    balance: Decimal,
    obligations: Iterable[RecurringObligation] = (),
    debts: Iterable[DebtTracker] = (),
    expected_income: Iterable[ExpectedIncome] = (),
    daily_spent: Decimal = ZERO,
    no_obligation_window_days: int = DEFAULT_WINDOW_DAYS,
) -> LiquidityReport:
    """
    Build a LiquidityReport from a snapshot of the finance data.

    Args:
        today: The day to evaluate (inject it; never read the clock here)
        balance: Current liquid cash, may be negative
        obligations: Recurring monthly bills
        debts: Long-term debts (only used for the net position)
        expected_income: Promised future cash
        daily_spent: Amount already spent today
        no_obligation_window_days: Divisor used when no bills are tracked

    Returns:
        The full report. Never raises for valid financial states.
    """
    income = list(expected_income)

    schedules = sorted(
        (schedule_obligation(ob, today, balance, income) for ob in obligations),
        key=lambda s: s.days_until,
    )

    total_debt = sum((debt.remaining for debt in debts), ZERO)

    # Income beyond every tracked deadline (or undated) is pipeline only
    latest_deadline: Optional[date] = max((s.due_date for s in schedules), default=None)
    pipeline = sum(
        (
            item.amount
            for item in income
            if item.expected_date is None
            or latest_deadline is None
            or item.expected_date > latest_deadline
        ),
        ZERO,
    )

    report = LiquidityReport(
        as_of=today,
        balance=balance,
        schedules=schedules,
        total_daily_set_aside=sum((s.daily_cost for s in schedules), ZERO),
        pipeline_income=pipeline,
        daily_spent=daily_spent,
        total_debt_remaining=total_debt,
        net_position=balance - total_debt,
    )

    if not schedules:
        # Unconstrained: spread the balance over a nominal month
        report.daily_survival_budget = _to_cents(
            balance / Decimal(no_obligation_window_days)
        )
    else:
        nearest = schedules[0]
        report.next_obligation = nearest
        report.eligible_income_nearest = nearest.eligible_income

        distinct_deadlines = sorted({s.due_date for s in schedules})
        if len(distinct_deadlines) > 1:
            report.eligible_income_following = eligible_income(
                income, distinct_deadlines[1]
            )

        report.is_liquidity_short = any(s.is_short for s in schedules)

        if report.is_liquidity_short:
            report.daily_survival_budget = ZERO
        else:
            spare = max(ZERO, nearest.surplus)
            report.daily_survival_budget = _to_cents(spare / Decimal(nearest.days_until))

    report.remaining_survival_today = max(
        ZERO, _to_cents(report.daily_survival_budget - daily_spent)
    )
    return report
