"""
Tests for the liquidity engine.

The engine is a pure function, so every test builds its inputs inline
and checks the report.
"""

from datetime import date
from decimal import Decimal

import pytest

from journalme.engine import compute_liquidity_report, daily_cost, eligible_income
from journalme.models.finance import DebtTracker, ExpectedIncome, RecurringObligation


TODAY = date(2024, 6, 5)  # June has 30 days


def bill(label, amount, day):
    return RecurringObligation(label=label, amount=Decimal(amount), day_of_month=day)


def income(label, amount, when=None):
    return ExpectedIncome(label=label, amount=Decimal(amount), expected_date=when)


class TestWorkedExamples:
    """The three reference scenarios."""

    def test_rent_exactly_covered(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("10000"),
            obligations=[bill("Rent", "10000", 11)],
        )
        nearest = report.next_obligation
        assert nearest.days_until == 7
        assert nearest.daily_cost == Decimal("1429")
        assert nearest.surplus == Decimal("0")
        assert report.is_liquidity_short is False
        assert report.daily_survival_budget == Decimal("0")

    def test_emi_short_despite_income(self):
        report = compute_liquidity_report(
            today=date(2024, 6, 1),
            balance=Decimal("5000"),
            obligations=[bill("EMI", "10813", 13)],
            expected_income=[income("Salary", "3000", date(2024, 6, 10))],
        )
        nearest = report.next_obligation
        assert nearest.days_until == 13
        assert report.eligible_income_nearest == Decimal("3000")
        assert nearest.surplus == Decimal("-2813")
        assert report.is_liquidity_short is True
        assert report.daily_survival_budget == Decimal("0")
        assert report.worst_shortfall == Decimal("2813")

    def test_no_obligations_spreads_over_thirty_days(self):
        report = compute_liquidity_report(today=TODAY, balance=Decimal("50000"))
        assert report.next_obligation is None
        assert report.is_liquidity_short is False
        assert report.daily_survival_budget == Decimal("1666.67")


class TestDailyCost:

    def test_rounds_up(self):
        assert daily_cost(Decimal("10000"), 7) == Decimal("1429")

    def test_exact_division(self):
        assert daily_cost(Decimal("3000"), 30) == Decimal("100")

    def test_zero_amount(self):
        assert daily_cost(Decimal("0"), 7) == Decimal("0")

    def test_never_underfunds(self):
        for amount in ("1", "99.99", "10813", "123456.78"):
            for days in range(1, 32):
                cost = daily_cost(Decimal(amount), days)
                assert cost * days >= Decimal(amount)
                assert cost == cost.to_integral_value()


class TestEligibleIncome:

    def test_income_on_deadline_counts(self):
        items = [income("Client", "500", date(2024, 6, 11))]
        assert eligible_income(items, date(2024, 6, 11)) == Decimal("500")

    def test_income_after_deadline_excluded(self):
        items = [income("Client", "500", date(2024, 6, 12))]
        assert eligible_income(items, date(2024, 6, 11)) == Decimal("0")

    def test_undated_income_excluded(self):
        assert eligible_income([income("Someday", "500")], date(2024, 6, 11)) == Decimal("0")

    def test_past_dated_income_still_counts(self):
        items = [income("Late", "500", date(2024, 6, 1))]
        assert eligible_income(items, date(2024, 6, 11)) == Decimal("500")


class TestShortage:
    """Tests for per-obligation shortage checks."""

    def test_late_income_does_not_rescue_a_deadline(self):
        obligations = [bill("EMI", "10813", 13)]
        without = compute_liquidity_report(
            today=date(2024, 6, 1), balance=Decimal("5000"), obligations=obligations,
        )
        with_late = compute_liquidity_report(
            today=date(2024, 6, 1),
            balance=Decimal("5000"),
            obligations=obligations,
            expected_income=[income("Salary", "3000", date(2024, 6, 14))],
        )
        assert with_late.next_obligation.eligible_income == Decimal("0")
        assert with_late.next_obligation.surplus == without.next_obligation.surplus
        assert with_late.is_liquidity_short is True

    def test_later_obligation_can_make_liquidity_short(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("10500"),
            obligations=[bill("Rent", "10000", 11), bill("EMI", "10813", 13)],
        )
        rent, emi = report.schedules
        assert rent.is_short is False
        assert emi.is_short is True
        assert report.is_liquidity_short is True
        assert report.daily_survival_budget == Decimal("0")
        assert report.short_obligations == [emi]

    def test_each_deadline_uses_its_own_income(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("10500"),
            obligations=[bill("Rent", "10000", 11), bill("EMI", "10813", 13)],
            expected_income=[income("Client", "1000", date(2024, 6, 12))],
        )
        rent, emi = report.schedules
        assert rent.eligible_income == Decimal("0")
        assert emi.eligible_income == Decimal("1000")
        assert emi.surplus == Decimal("687")
        assert report.is_liquidity_short is False
        assert report.eligible_income_nearest == Decimal("0")
        assert report.eligible_income_following == Decimal("1000")
        # 500 spare over 7 days
        assert report.daily_survival_budget == Decimal("71.43")

    def test_zero_amount_obligation_never_short(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("-100"),
            obligations=[bill("Placeholder", "0", 11)],
        )
        assert report.next_obligation.is_short is False
        assert report.next_obligation.daily_cost == Decimal("0")
        assert report.is_liquidity_short is False
        assert report.daily_survival_budget == Decimal("0")

    def test_negative_balance_is_short(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("-200"),
            obligations=[bill("Phone", "1000", 11)],
        )
        assert report.is_liquidity_short is True
        assert report.daily_survival_budget == Decimal("0")
        assert report.remaining_survival_today == Decimal("0")


class TestScheduleOrdering:

    def test_nearest_deadline_first(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("100000"),
            obligations=[
                bill("Insurance", "2000", 2),   # rolled to July: 28 days
                bill("EMI", "10813", 13),
                bill("Rent", "10000", 11),
            ],
        )
        assert [s.obligation.label for s in report.schedules] == ["Rent", "EMI", "Insurance"]
        assert [s.days_until for s in report.schedules] == [7, 9, 28]
        assert report.next_obligation.obligation.label == "Rent"

    def test_total_daily_set_aside(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("100000"),
            obligations=[bill("Rent", "10000", 11), bill("EMI", "10813", 13)],
        )
        # ceil(10000/7) + ceil(10813/9)
        assert report.total_daily_set_aside == Decimal("1429") + Decimal("1202")

    def test_same_day_obligations_have_no_following_deadline(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("100000"),
            obligations=[bill("Rent", "10000", 11), bill("Wifi", "900", 11)],
        )
        assert report.eligible_income_following is None


class TestPipelineIncome:

    def test_undated_and_late_income_is_pipeline(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("50000"),
            obligations=[bill("Rent", "10000", 11), bill("EMI", "10813", 13)],
            expected_income=[
                income("Someday", "700"),
                income("After all bills", "300", date(2024, 6, 20)),
                income("Before EMI", "1000", date(2024, 6, 12)),
            ],
        )
        assert report.pipeline_income == Decimal("1000")

    def test_all_income_is_pipeline_without_obligations(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("3000"),
            expected_income=[income("Client", "500", date(2024, 6, 7)), income("Later", "250")],
        )
        assert report.pipeline_income == Decimal("750")
        # Pipeline never feeds the budget
        assert report.daily_survival_budget == Decimal("100.00")


class TestSurvivalBudget:

    def test_negative_balance_without_obligations(self):
        report = compute_liquidity_report(today=TODAY, balance=Decimal("-3000"))
        assert report.daily_survival_budget == Decimal("-100.00")
        assert report.remaining_survival_today == Decimal("0")
        assert report.is_liquidity_short is False

    def test_custom_window(self):
        report = compute_liquidity_report(
            today=TODAY, balance=Decimal("3000"), no_obligation_window_days=10,
        )
        assert report.daily_survival_budget == Decimal("300.00")

    @pytest.mark.parametrize("spent, remaining", [
        ("0", "1666.67"),
        ("500", "1166.67"),
        ("1666.67", "0"),
        ("2000", "0"),
    ])
    def test_remaining_today(self, spent, remaining):
        report = compute_liquidity_report(
            today=TODAY, balance=Decimal("50000"), daily_spent=Decimal(spent),
        )
        assert report.remaining_survival_today == Decimal(remaining)
        assert report.remaining_survival_today >= 0

    def test_budget_divides_nearest_surplus(self):
        report = compute_liquidity_report(
            today=TODAY,
            balance=Decimal("17000"),
            obligations=[bill("Rent", "10000", 11)],
        )
        assert report.daily_survival_budget == Decimal("1000.00")


class TestNetPosition:

    def test_debts_reduce_net_position_only(self):
        debts = [
            DebtTracker(label="Card", total_owed=Decimal("50000"), amount_paid=Decimal("20000")),
            DebtTracker(label="Friend", total_owed=Decimal("5000")),
        ]
        with_debts = compute_liquidity_report(
            today=TODAY, balance=Decimal("10000"), debts=debts,
        )
        without = compute_liquidity_report(today=TODAY, balance=Decimal("10000"))

        assert with_debts.total_debt_remaining == Decimal("35000")
        assert with_debts.net_position == Decimal("-25000")
        assert with_debts.daily_survival_budget == without.daily_survival_budget
