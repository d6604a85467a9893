"""
Tests for the flows the UI calls.

"Today" comes from a FixedClock so day boundaries can be crossed
without touching the system clock.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from journalme.activity import ActivityLogger
from journalme.config import AppSettings
from journalme.models.activity import ActivityEventType
from journalme.orchestrator import (
    AUTO_BACKUP_MARKER,
    SPEND_RESET_MARKER,
    TASK_JUDGE_MARKER,
    BackupFlow,
    DailyResetService,
    FinanceFlow,
    LiquidityMonitor,
    create_app_components,
)
from journalme.services.backup import BackupCodec
from tests.helpers import run


@pytest.fixture
def activity():
    return ActivityLogger()


@pytest.fixture
def flow(finance, activity):
    return FinanceFlow(finance, activity)


@pytest.fixture
def monitor(finance, clock):
    monitor = LiquidityMonitor(finance, clock, AppSettings())
    monitor.start()
    yield monitor
    monitor.stop()


@pytest.fixture
def daily_reset(finance, tasks, bookkeeping, clock, activity):
    return DailyResetService(finance, tasks, bookkeeping, clock, activity)


class TestFinanceFlow:

    def test_spend_and_reverse(self, flow, activity):
        run(flow.update_balance(Decimal("1000")))
        item = run(flow.log_spend("Tea", Decimal("20")))
        run(flow.reverse_spend(item.id))

        snapshot = run(flow.get_snapshot())
        assert snapshot.balance.total == Decimal("1000")
        assert snapshot.spend_state.spend_list == []

        types = [e.event_type for e in activity.recent_events]
        assert types == [
            ActivityEventType.SPEND_REVERSED,
            ActivityEventType.SPEND_LOGGED,
            ActivityEventType.BALANCE_UPDATED,
        ]

    def test_clear_income(self, flow):
        run(flow.update_balance(Decimal("100")))
        income = run(flow.add_expected_income("Client", Decimal("400"), date(2024, 6, 10)))
        balance = run(flow.clear_income(income.id))
        assert balance.total == Decimal("500")

    def test_obligation_lifecycle(self, flow):
        ob = run(flow.add_obligation("Rent", Decimal("10000"), 11))
        run(flow.update_obligation(ob.model_copy(update={"day_of_month": 12})))
        assert run(flow.get_snapshot()).obligations[0].day_of_month == 12
        run(flow.remove_obligation(ob.id))
        assert run(flow.get_snapshot()).obligations == []

    def test_invalid_obligation_rejected(self, flow):
        with pytest.raises(ValueError):
            run(flow.add_obligation("Rent", Decimal("100"), 32))

    def test_debt_flow(self, flow):
        debt = run(flow.add_debt("Card", Decimal("5000")))
        paid = run(flow.log_debt_payment(debt.id, Decimal("1000")))
        assert paid.remaining == Decimal("4000")
        run(flow.remove_debt(debt.id))
        assert run(flow.get_snapshot()).debts == []


class TestLiquidityMonitor:
    """The report follows every finance change."""

    def test_listener_sees_each_change(self, monitor, flow):
        budgets = []
        monitor.add_listener(lambda report: budgets.append(report.remaining_survival_today))

        run(flow.update_balance(Decimal("3000")))
        run(flow.log_spend("Tea", Decimal("20")))

        # Initial (empty) report, then one per write
        assert budgets == [Decimal("0"), Decimal("100.00"), Decimal("79.33")]

    def test_obligation_changes_flag(self, monitor, flow):
        run(flow.update_balance(Decimal("5000")))
        run(flow.add_obligation("EMI", Decimal("10813"), 13))
        assert monitor.latest_report.is_liquidity_short is True

        income = run(flow.add_expected_income("Salary", Decimal("6000"), date(2024, 6, 10)))
        assert monitor.latest_report.is_liquidity_short is False

        run(flow.delete_expected_income(income.id))
        assert monitor.latest_report.is_liquidity_short is True

    def test_report_uses_injected_today(self, monitor, flow, clock):
        run(flow.add_obligation("Rent", Decimal("700"), 11))
        assert run(monitor.current_report()).next_obligation.days_until == 7

        clock.today = clock.today + timedelta(days=6)
        assert run(monitor.current_report()).next_obligation.days_until == 1

    def test_stop_unsubscribes(self, monitor, flow):
        seen = []
        monitor.add_listener(seen.append)
        monitor.stop()
        run(flow.update_balance(Decimal("1")))
        assert len(seen) == 1

    def test_review(self, monitor, flow):
        run(flow.update_balance(Decimal("-5")))
        issues = run(monitor.review())
        assert [i.issue_type for i in issues] == ["negative"]


class TestDailyResetService:
    """Tests for the day-boundary jobs."""

    def test_first_run_does_both(self, daily_reset, finance, tasks, bookkeeping, clock):
        run(finance.log_spend("Tea", Decimal("20")))
        run(tasks.add_task("Walk"))

        outcome = run(daily_reset.run_if_due())

        assert outcome.anything_ran
        assert outcome.cleared_spends == 1
        assert (outcome.archived_tasks, outcome.missed_tasks, outcome.penalty) == (1, 1, 5)
        assert run(bookkeeping.get_marker(SPEND_RESET_MARKER)) == clock.today
        assert run(bookkeeping.get_marker(TASK_JUDGE_MARKER)) == clock.today

    def test_second_run_same_day_does_nothing(self, daily_reset, finance):
        run(daily_reset.run_if_due())
        run(finance.log_spend("Tea", Decimal("20")))

        outcome = run(daily_reset.run_if_due())

        assert not outcome.anything_ran
        assert run(finance.get_daily_spend_state()).daily_spent == Decimal("20")

    def test_next_day_runs_again(self, daily_reset, finance, clock):
        run(daily_reset.run_if_due())
        run(finance.log_spend("Tea", Decimal("20")))
        clock.today = clock.today + timedelta(days=1)

        outcome = run(daily_reset.run_if_due())

        assert outcome.spend_reset is True
        state = run(finance.get_daily_spend_state())
        assert state.day == clock.today
        assert state.daily_spent == Decimal("0")

    def test_jobs_are_independent(self, daily_reset, finance, tasks):
        run(finance.log_spend("Tea", Decimal("20")))
        run(tasks.add_task("Walk"))

        assert run(daily_reset.judge_tasks_if_due()) == (1, 1, 5)
        # Spend log untouched until its own job runs
        assert run(finance.get_daily_spend_state()).daily_spent == Decimal("20")

        assert run(daily_reset.reset_spend_if_due()) == 1
        assert run(daily_reset.judge_tasks_if_due()) is None

    def test_reset_does_not_touch_balance(self, daily_reset, finance):
        run(finance.set_balance(Decimal("1000")))
        run(finance.log_spend("Tea", Decimal("20")))
        run(daily_reset.run_if_due())
        assert run(finance.get_balance()).total == Decimal("980")


class TestBackupFlow:

    @pytest.fixture
    def backup(self, db, bookkeeping, clock, activity):
        return BackupFlow(BackupCodec(db), bookkeeping, clock, activity)

    def test_export_sets_marker(self, backup, bookkeeping, clock):
        filename, text = run(backup.export())
        assert filename == "JournalMe_AutoBackup_2024-06-05.json"
        assert text.startswith("{")
        assert run(bookkeeping.get_marker(AUTO_BACKUP_MARKER)) == clock.today

    def test_auto_export_once_per_day(self, backup, clock, tmp_path):
        first = run(backup.auto_export_to(tmp_path))
        second = run(backup.auto_export_to(tmp_path))
        clock.today = clock.today + timedelta(days=1)
        third = run(backup.auto_export_to(tmp_path))

        assert first == tmp_path / "JournalMe_AutoBackup_2024-06-05.json"
        assert first.exists()
        assert second is None
        assert third.name == "JournalMe_AutoBackup_2024-06-06.json"

    def test_restore(self, backup, finance, activity):
        run(finance.set_balance(Decimal("750")))
        _, text = run(backup.export())
        run(finance.set_balance(Decimal("0")))

        run(backup.restore(text))

        assert run(finance.get_balance()).total == Decimal("750")
        assert activity.recent_events[0].event_type == ActivityEventType.BACKUP_IMPORTED


class TestCreateAppComponents:

    def test_wires_everything_without_advisor(self, clock):
        app = create_app_components(
            settings=AppSettings(data_path=None),
            today_provider=clock,
            use_advisor=False,
        )
        assert app.advisor is None

        run(app.finance.update_balance(Decimal("3000")))
        assert app.monitor.latest_report.daily_survival_budget == Decimal("100.00")

        suggestion = run(app.suggest_tasks(clock.today))
        assert suggestion.from_fallback is True
        assert len(suggestion.tasks) == 5

    def test_persists_to_configured_file(self, clock, tmp_path):
        path = tmp_path / "data" / "journalme.json"
        settings = AppSettings(data_path=str(path))

        app = create_app_components(settings=settings, today_provider=clock, use_advisor=False)
        run(app.finance.update_balance(Decimal("42")))

        reopened = create_app_components(settings=settings, today_provider=clock, use_advisor=False)
        assert run(reopened.finance.get_snapshot()).balance.total == Decimal("42")

    def test_fallback_without_advisor_skips_context(self, clock):
        app = create_app_components(
            settings=AppSettings(data_path=None), today_provider=clock, use_advisor=False,
        )

        async def unavailable():
            raise AssertionError("report should not be built")

        app.monitor.current_report = unavailable
        suggestion = run(app.suggest_tasks(clock.today))
        assert suggestion.from_fallback is True


class TestStartupJobs:
    """Day-boundary jobs and the daily automatic backup."""

    def test_auto_backup_written_once_per_day(self, clock, tmp_path):
        backups = tmp_path / "backups"
        app = create_app_components(
            settings=AppSettings(data_path=None, backup_path=str(backups)),
            today_provider=clock,
            use_advisor=False,
        )
        run(app.tasks.add_task("Walk"))

        outcome = run(app.run_startup_jobs())
        run(app.run_startup_jobs())

        assert outcome.tasks_judged is True
        assert [p.name for p in backups.iterdir()] == ["JournalMe_AutoBackup_2024-06-05.json"]

        clock.today = clock.today + timedelta(days=1)
        run(app.run_startup_jobs())
        assert len(list(backups.iterdir())) == 2

    def test_no_backup_folder_configured(self, clock):
        app = create_app_components(
            settings=AppSettings(data_path=None, backup_path=None),
            today_provider=clock,
            use_advisor=False,
        )
        outcome = run(app.run_startup_jobs())
        assert outcome.spend_reset is True
        assert run(app.bookkeeping.get_marker(AUTO_BACKUP_MARKER)) is None

    def test_failed_backup_does_not_block(self, clock, tmp_path):
        blocker = tmp_path / "not-a-folder"
        blocker.write_text("", encoding="utf-8")
        app = create_app_components(
            settings=AppSettings(data_path=None, backup_path=str(blocker)),
            today_provider=clock,
            use_advisor=False,
        )

        outcome = run(app.run_startup_jobs())

        assert outcome.anything_ran
        types = [e.event_type for e in app.activity_logger.recent_events]
        assert ActivityEventType.SYSTEM_ERROR in types
