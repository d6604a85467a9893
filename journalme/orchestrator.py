"""
Main Orchestrator for JournalMe

This module ties together storage, the liquidity engine, logging and
the advisor, and defines the flows the UI calls:
1. Finance (balance, spends, income, bills, debts)
2. Live liquidity report (recomputed on every finance change)
3. Day boundary (spend reset and task judging)

DESIGN DECISION: "Today" is always injected through a today_provider.
Nothing below this layer reads the clock, so every flow is testable
across month and day boundaries.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel

from journalme.activity import ActivityLogger, configure_logging
from journalme.agents import FALLBACK_TASKS, AdvisorContext, TaskAdvisor, TaskSuggestion
from journalme.config import AppSettings, get_settings
from journalme.engine import compute_liquidity_report, has_day_changed
from journalme.models.finance import (
    CashBalance,
    DebtTracker,
    ExpectedIncome,
    FinanceSnapshot,
    LiquidityReport,
    RecurringObligation,
    SpendItem,
)
from journalme.services.backup import BackupCodec, backup_filename, needs_auto_backup
from journalme.services.storage import (
    BookkeepingStorageInterface,
    FinanceStorageInterface,
    GoalStorageInterface,
    JournalStorageInterface,
    LocalBookkeepingStorage,
    LocalDatabase,
    LocalFinanceStorage,
    LocalGoalStorage,
    LocalJournalStorage,
    LocalTaskStorage,
    StorageError,
    TaskStorageInterface,
)
from journalme.validation import FinanceValidator, ValidationIssue


TodayProvider = Callable[[], date]

SPEND_RESET_MARKER = "spend_reset"
TASK_JUDGE_MARKER = "task_judge"
AUTO_BACKUP_MARKER = "auto_backup"


class FinanceFlow:
    """
    User-facing finance operations.

    Every operation that moves money is logged after the storage write
    succeeds.
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._activity_logger = activity_logger or ActivityLogger()

    async def get_snapshot(self) -> FinanceSnapshot:
        return await self._storage.get_snapshot()

    async def update_balance(self, total: Decimal) -> CashBalance:
        old = await self._storage.get_balance()
        balance = await self._storage.set_balance(total)
        self._activity_logger.log_balance_updated(old.total, balance.total)
        return balance

    async def log_spend(self, label: str, amount: Decimal) -> SpendItem:
        """Record a spend; the balance drops by the same amount."""
        item = await self._storage.log_spend(label, amount)
        balance = await self._storage.get_balance()
        self._activity_logger.log_spend_logged(item.id, item.label, item.amount, balance.total)
        return item

    async def reverse_spend(self, item_id: UUID) -> SpendItem:
        """Undo a spend; the balance and today's total go back exactly."""
        item = await self._storage.delete_spend(item_id)
        self._activity_logger.log_spend_reversed(item.id, item.label, item.amount)
        return item

    async def add_expected_income(
        self,
        label: str,
        amount: Decimal,
        expected_date: Optional[date] = None,
    ) -> ExpectedIncome:
        income = ExpectedIncome(label=label, amount=amount, expected_date=expected_date)
        await self._storage.add_income(income)
        self._activity_logger.log_income_added(
            income.id, income.label, income.amount, income.expected_date
        )
        return income

    async def edit_expected_income(self, income: ExpectedIncome) -> ExpectedIncome:
        return await self._storage.edit_income(income)

    async def delete_expected_income(self, income_id: UUID) -> ExpectedIncome:
        return await self._storage.delete_income(income_id)

    async def clear_income(self, income_id: UUID) -> CashBalance:
        """Confirm an expected payment arrived."""
        income, balance = await self._storage.clear_income(income_id)
        self._activity_logger.log_income_cleared(
            income.id, income.label, income.amount, balance.total
        )
        return balance

    async def add_obligation(
        self,
        label: str,
        amount: Decimal,
        day_of_month: int,
    ) -> RecurringObligation:
        obligation = RecurringObligation(label=label, amount=amount, day_of_month=day_of_month)
        await self._storage.add_obligation(obligation)
        self._activity_logger.log_obligation_added(
            obligation.id, obligation.label, obligation.amount, obligation.day_of_month
        )
        return obligation

    async def update_obligation(self, obligation: RecurringObligation) -> RecurringObligation:
        return await self._storage.update_obligation(obligation)

    async def remove_obligation(self, obligation_id: UUID) -> RecurringObligation:
        obligation = await self._storage.delete_obligation(obligation_id)
        self._activity_logger.log_obligation_removed(obligation.id, obligation.label)
        return obligation

    async def add_debt(self, label: str, total_owed: Decimal) -> DebtTracker:
        debt = DebtTracker(label=label, total_owed=total_owed)
        return await self._storage.add_debt(debt)

    async def log_debt_payment(self, debt_id: UUID, payment: Decimal) -> DebtTracker:
        debt = await self._storage.log_debt_payment(debt_id, payment)
        self._activity_logger.log_debt_payment(debt.id, debt.label, payment, debt.remaining)
        return debt

    async def remove_debt(self, debt_id: UUID) -> DebtTracker:
        return await self._storage.delete_debt(debt_id)


class LiquidityMonitor:
    """
    Keeps a LiquidityReport current.

    Subscribes to finance storage and re-derives the whole report from
    the latest snapshot on every change. The report is never patched
    incrementally.
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        today_provider: TodayProvider,
        settings: Optional[AppSettings] = None,
        validator: Optional[FinanceValidator] = None,
    ):
        self._storage = storage
        self._today = today_provider
        self._settings = settings or get_settings().app
        self._validator = validator or FinanceValidator()
        self._snapshot: Optional[FinanceSnapshot] = None
        self._listeners: list[Callable[[LiquidityReport], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def evaluate(self, snapshot: FinanceSnapshot) -> LiquidityReport:
        """Run the engine on ``snapshot`` for today."""
        return compute_liquidity_report(
            today=self._today(),
            balance=snapshot.balance.total,
            obligations=snapshot.obligations,
            debts=snapshot.debts,
            expected_income=snapshot.expected_income,
            daily_spent=snapshot.spend_state.daily_spent,
            no_obligation_window_days=self._settings.no_obligation_window_days,
        )

    async def current_report(self) -> LiquidityReport:
        return self.evaluate(await self._storage.get_snapshot())

    async def review(self) -> list[ValidationIssue]:
        """Non-blocking consistency warnings for the finance data."""
        return self._validator.review(await self._storage.get_snapshot(), self._today())

    @property
    def latest_report(self) -> Optional[LiquidityReport]:
        """Report for the last snapshot seen (recomputed against today's date)."""
        if self._snapshot is None:
            return None
        return self.evaluate(self._snapshot)

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._storage.subscribe(self._on_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def add_listener(self, listener: Callable[[LiquidityReport], None]) -> None:
        self._listeners.append(listener)
        if self._snapshot is not None:
            listener(self.evaluate(self._snapshot))

    def _on_change(self, snapshot: FinanceSnapshot) -> None:
        self._snapshot = snapshot
        report = self.evaluate(snapshot)
        for listener in list(self._listeners):
            listener(report)


class DailyResetOutcome(BaseModel):
    """What happened at a day boundary."""

    day: date
    spend_reset: bool = False
    cleared_spends: int = 0
    tasks_judged: bool = False
    archived_tasks: int = 0
    missed_tasks: int = 0
    penalty: int = 0

    @property
    def anything_ran(self) -> bool:
        return self.spend_reset or self.tasks_judged


class DailyResetService:
    """
    Day-boundary jobs.

    DESIGN DECISION: Spend reset and task judging are two separate jobs
    that share a boundary detector. Each keeps its own last-run marker,
    so either can be triggered (or fail) without the other.
    """

    def __init__(
        self,
        finance_storage: FinanceStorageInterface,
        task_storage: TaskStorageInterface,
        bookkeeping: BookkeepingStorageInterface,
        today_provider: TodayProvider,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._finance = finance_storage
        self._tasks = task_storage
        self._bookkeeping = bookkeeping
        self._today = today_provider
        self._activity_logger = activity_logger or ActivityLogger()

    async def reset_spend_if_due(self) -> Optional[int]:
        """
        Clear the spend log once per day.

        Returns:
            Number of items cleared, or None if already done today
        """
        today = self._today()
        last_run = await self._bookkeeping.get_marker(SPEND_RESET_MARKER)
        if not has_day_changed(last_run, today):
            return None

        cleared = await self._finance.reset_day(today)
        await self._bookkeeping.set_marker(SPEND_RESET_MARKER, today)
        self._activity_logger.log_spend_log_reset(today, cleared)
        return cleared

    async def judge_tasks_if_due(self) -> Optional[tuple[int, int, int]]:
        """
        Archive yesterday's tasks and charge for the missed ones, once per day.

        Returns:
            (archived, missed, penalty), or None if already done today
        """
        today = self._today()
        last_run = await self._bookkeeping.get_marker(TASK_JUDGE_MARKER)
        if not has_day_changed(last_run, today):
            return None

        archived, missed, penalty = await self._tasks.judge_day()
        await self._bookkeeping.set_marker(TASK_JUDGE_MARKER, today)
        self._activity_logger.log_tasks_judged(today, archived, missed, penalty)
        return archived, missed, penalty

    async def run_if_due(self) -> DailyResetOutcome:
        """Run both jobs; each decides on its own whether it is due."""
        outcome = DailyResetOutcome(day=self._today())

        cleared = await self.reset_spend_if_due()
        if cleared is not None:
            outcome.spend_reset = True
            outcome.cleared_spends = cleared

        judged = await self.judge_tasks_if_due()
        if judged is not None:
            outcome.tasks_judged = True
            outcome.archived_tasks, outcome.missed_tasks, outcome.penalty = judged

        return outcome


class BackupFlow:
    """Export/import with one automatic export per day."""

    def __init__(
        self,
        codec: BackupCodec,
        bookkeeping: BookkeepingStorageInterface,
        today_provider: TodayProvider,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._codec = codec
        self._bookkeeping = bookkeeping
        self._today = today_provider
        self._activity_logger = activity_logger or ActivityLogger()

    async def export(self) -> tuple[str, str]:
        """
        Returns:
            (filename, json_text)
        """
        today = self._today()
        text = self._codec.export_json(datetime.combine(today, datetime.now().time()))
        filename = backup_filename(today)
        await self._bookkeeping.set_marker(AUTO_BACKUP_MARKER, today)
        self._activity_logger.log_backup_exported(filename, len(text.encode("utf-8")))
        return filename, text

    async def auto_export_to(self, directory: Path) -> Optional[Path]:
        """Write today's backup into ``directory`` unless one was already taken."""
        last = await self._bookkeeping.get_marker(AUTO_BACKUP_MARKER)
        if not needs_auto_backup(last, self._today()):
            return None

        filename, text = await self.export()
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / filename
        target.write_text(text, encoding="utf-8")
        return target

    async def restore(self, text: str) -> None:
        snapshot = await self._codec.import_json(text)
        self._activity_logger.log_backup_imported(snapshot.backup_date)


@dataclass
class AppComponents:
    """Everything the UI needs, wired together."""

    database: LocalDatabase
    finance: FinanceFlow
    monitor: LiquidityMonitor
    daily_reset: DailyResetService
    backup: BackupFlow
    journal: JournalStorageInterface
    tasks: TaskStorageInterface
    goals: GoalStorageInterface
    bookkeeping: BookkeepingStorageInterface
    activity_logger: ActivityLogger
    advisor: Optional[TaskAdvisor] = None
    backup_dir: Optional[Path] = None

    async def run_startup_jobs(self) -> DailyResetOutcome:
        """
        Work that runs once per app load.

        Day-boundary jobs first, then today's automatic backup if a
        backup folder is configured. A failed backup is logged and never
        blocks the app.
        """
        outcome = await self.daily_reset.run_if_due()

        if self.backup_dir is not None:
            try:
                await self.backup.auto_export_to(self.backup_dir)
            except (OSError, StorageError) as e:
                self.activity_logger.log_error("auto_backup_failed", str(e))

        return outcome

    async def suggest_tasks(self, today: date) -> TaskSuggestion:
        """Build the advisor context from live data and ask for tasks."""
        if self.advisor is None:
            return TaskSuggestion(tasks=list(FALLBACK_TASKS), from_fallback=True)

        report = await self.monitor.current_report()
        entries = await self.journal.list_entries()
        goals = await self.goals.list_goals()
        context = AdvisorContext(
            net_position=report.net_position,
            survival_budget=report.daily_survival_budget,
            recent_entries=[e.content for e in entries[:5]],
            goals=[g.label for g in goals if not g.completed],
        )
        return await self.advisor.suggest_tasks(context, today)


def create_app_components(
    settings: Optional[AppSettings] = None,
    today_provider: TodayProvider = date.today,
    use_advisor: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: App settings (loaded from env if omitted)
        today_provider: Source of "today"; tests pass a fixed date
        use_advisor: Whether to try configuring Gemini.
                     Set to False for testing without network access.

    Returns:
        Wired AppComponents
    """
    settings = settings or get_settings().app
    configure_logging(settings.log_level)
    activity_logger = ActivityLogger()

    db = LocalDatabase(path=settings.data_file)
    finance_storage = LocalFinanceStorage(db)
    task_storage = LocalTaskStorage(db)
    bookkeeping = LocalBookkeepingStorage(db)

    advisor = None
    if use_advisor:
        try:
            advisor = TaskAdvisor(bookkeeping, activity_logger=activity_logger)
        except Exception as e:
            # Gemini not configured - continue with the fallback list
            activity_logger.log_error("advisor_unavailable", str(e))

    monitor = LiquidityMonitor(finance_storage, today_provider, settings)
    monitor.start()

    return AppComponents(
        database=db,
        finance=FinanceFlow(finance_storage, activity_logger),
        monitor=monitor,
        daily_reset=DailyResetService(
            finance_storage, task_storage, bookkeeping, today_provider, activity_logger
        ),
        backup=BackupFlow(BackupCodec(db), bookkeeping, today_provider, activity_logger),
        journal=LocalJournalStorage(db),
        tasks=task_storage,
        goals=LocalGoalStorage(db),
        bookkeeping=bookkeeping,
        activity_logger=activity_logger,
        advisor=advisor,
        backup_dir=settings.backup_dir,
    )
