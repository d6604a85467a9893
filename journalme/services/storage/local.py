"""
Local Storage Implementation

DESIGN DECISION: All data lives in-process, optionally mirrored to a
single JSON file on disk:
1. Works fully offline, no account or server needed
2. Reads are instant, so the dashboard can recompute on every change
3. The on-disk file is the same document as a backup export

TRADEOFFS:
- One process owns the file (we're fine for personal use)
- Whole-file rewrite per commit (the data set is tiny)

Writes go through LocalDatabase.transaction(), which holds the
database's own threading lock for the whole write. Streamlit runs each
browser session on its own thread and event loop, so the lock has to
belong to the database, not to a loop. That gives last-writer-wins ordering: a spend logged in
one view and an income cleared in another are applied one after the
other against the latest balance, never against a stale copy.
"""

import asyncio
import os
import tempfile
import threading
import weakref
from contextlib import asynccontextmanager, suppress
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import ValidationError

from journalme.config import GamificationSettings, get_settings
from journalme.models.backup import BackupSnapshot
from journalme.models.finance import (
    CashBalance,
    DailySpendState,
    DebtTracker,
    ExpectedIncome,
    FinanceSnapshot,
    RecurringObligation,
    SpendItem,
)
from journalme.models.journal import AdvisorUsage, Goal, GoalHorizon, JournalEntry, Task
from journalme.services.storage.interface import (
    BookkeepingStorageInterface,
    FinanceStorageInterface,
    GoalStorageInterface,
    JournalStorageInterface,
    NotFoundError,
    StorageError,
    TaskStorageInterface,
    Unsubscribe,
)


T = TypeVar("T")

# Table names are the BackupSnapshot field names
FINANCE_TABLES = frozenset({"balance", "obligations", "debts", "expected_income", "spend_state"})
ALL_TABLES = frozenset(BackupSnapshot.model_fields) - {"version", "backup_date"}


class _Watcher:
    """A live query: re-run ``query`` and hand the result to ``callback``."""

    def __init__(
        self,
        tables: frozenset[str],
        query: Callable[[BackupSnapshot], Any],
        callback: Callable[[Any], None],
    ):
        self.tables = tables
        self.query = query
        self.callback = callback


class LocalDatabase:
    """
    In-process table store.

    State is a single BackupSnapshot. Readers get deep copies; writers
    mutate the live state inside transaction() and are rolled back if
    the body raises.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        starting_points: Optional[int] = None,
    ):
        """
        Initialize the database.

        Args:
            path: JSON file to load from and save to. None keeps
                  everything in memory.
            starting_points: Score for a freshly seeded database.
        """
        self._path = path
        # Serialises writers across threads; re-entrant so a reader on the
        # writing thread is never blocked by its own transaction
        self._write_lock = threading.RLock()
        # Queues coroutines of one event loop before they reach _write_lock
        self._loop_locks: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
        self._watchers: list[_Watcher] = []
        self._logger = structlog.get_logger("journalme.storage")

        if starting_points is None:
            starting_points = get_settings().gamification.starting_points

        self._state = self._load() if path and path.exists() else self._seed(starting_points)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @staticmethod
    def _seed(starting_points: int) -> BackupSnapshot:
        """Initial content of an empty database."""
        return BackupSnapshot(points=starting_points)

    def _load(self) -> BackupSnapshot:
        try:
            return BackupSnapshot.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Could not read database file {self._path}: {e}")

    def _persist(self) -> None:
        """Write the state to disk atomically (temp file + rename)."""
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Could not write database file {self._path}: {e}")

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self._state.model_dump_json(indent=2))
            os.replace(tmp, self._path)
        except OSError as e:
            with suppress(OSError):
                os.unlink(tmp)
            raise StorageError(f"Could not write database file {self._path}: {e}")

    def _loop_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        with self._write_lock:
            lock = self._loop_locks.get(loop)
            if lock is None:
                lock = self._loop_locks[loop] = asyncio.Lock()
            return lock

    def read(self, query: Callable[[BackupSnapshot], T]) -> T:
        """Run ``query`` against a private copy of the state."""
        with self._write_lock:
            state = self._state.model_copy(deep=True)
        return query(state)

    def snapshot(self) -> BackupSnapshot:
        """Deep copy of every table."""
        with self._write_lock:
            return self._state.model_copy(deep=True)

    @asynccontextmanager
    async def transaction(self, *tables: str) -> AsyncIterator[BackupSnapshot]:
        """
        Serialised write.

        Usage:
            async with db.transaction("balance", "spend_state") as state:
                state.balance.total -= amount

        Watchers on the named tables are notified after commit.

        CRITICAL: The backup used for rollback is taken while holding
        _write_lock, so rolling back can never erase another writer's
        committed change.
        """
        unknown = set(tables) - ALL_TABLES
        assert not unknown, f"Unknown tables: {unknown}"

        async with self._loop_lock():
            with self._write_lock:
                backup = self._state.model_copy(deep=True)
                try:
                    yield self._state
                    self._persist()
                except BaseException:
                    self._state = backup
                    raise

        self._notify(frozenset(tables))

    async def replace(self, snapshot: BackupSnapshot) -> None:
        """Swap in a whole new state (used by backup import)."""
        async with self.transaction(*ALL_TABLES):
            self._state = snapshot.model_copy(deep=True)

    def watch(
        self,
        tables: frozenset[str],
        query: Callable[[BackupSnapshot], T],
        callback: Callable[[T], None],
    ) -> Unsubscribe:
        """
        Register a live query.

        ``callback`` fires immediately and after every commit that touches
        one of ``tables``. Returns a function that cancels the watch.
        """
        watcher = _Watcher(tables, query, callback)
        self._watchers.append(watcher)
        callback(self.read(query))

        def unsubscribe() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unsubscribe

    def _notify(self, tables: frozenset[str]) -> None:
        for watcher in list(self._watchers):
            if watcher.tables & tables:
                try:
                    watcher.callback(self.read(watcher.query))
                except Exception as e:
                    # A broken subscriber must not undo a committed write
                    self._logger.error("watcher_failed", error=str(e))


def _find(items: list, item_id: UUID, kind: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    raise NotFoundError(f"{kind} not found: {item_id}")


def _finance_snapshot(state: BackupSnapshot) -> FinanceSnapshot:
    return FinanceSnapshot(
        balance=state.balance,
        obligations=sorted(state.obligations, key=lambda o: o.day_of_month),
        debts=state.debts,
        expected_income=state.expected_income,
        spend_state=state.spend_state,
    )


class LocalFinanceStorage(FinanceStorageInterface):
    """
    Local implementation of finance storage.

    Balance-moving operations (log_spend, delete_spend, clear_income)
    update both sides inside one transaction.
    """

    def __init__(self, db: LocalDatabase):
        self._db = db

    async def get_balance(self) -> CashBalance:
        return self._db.read(lambda s: s.balance)

    async def set_balance(self, total: Decimal) -> CashBalance:
        balance = CashBalance(total=total)
        async with self._db.transaction("balance") as state:
            state.balance = balance
        return balance.model_copy()

    async def list_obligations(self) -> list[RecurringObligation]:
        return self._db.read(lambda s: sorted(s.obligations, key=lambda o: o.day_of_month))

    async def add_obligation(self, obligation: RecurringObligation) -> RecurringObligation:
        async with self._db.transaction("obligations") as state:
            state.obligations.append(obligation.model_copy())
        return obligation

    async def update_obligation(self, obligation: RecurringObligation) -> RecurringObligation:
        async with self._db.transaction("obligations") as state:
            index = _find(state.obligations, obligation.id, "Obligation")
            state.obligations[index] = obligation.model_copy()
        return obligation

    async def delete_obligation(self, obligation_id: UUID) -> RecurringObligation:
        async with self._db.transaction("obligations") as state:
            index = _find(state.obligations, obligation_id, "Obligation")
            return state.obligations.pop(index)

    async def list_debts(self) -> list[DebtTracker]:
        return self._db.read(lambda s: s.debts)

    async def add_debt(self, debt: DebtTracker) -> DebtTracker:
        async with self._db.transaction("debts") as state:
            state.debts.append(debt.model_copy())
        return debt

    async def log_debt_payment(self, debt_id: UUID, payment: Decimal) -> DebtTracker:
        async with self._db.transaction("debts") as state:
            index = _find(state.debts, debt_id, "Debt")
            current = state.debts[index]
            # Re-validate so a correction can't push amount_paid below zero
            updated = DebtTracker.model_validate(
                {**current.model_dump(), "amount_paid": current.amount_paid + payment}
            )
            state.debts[index] = updated
        return updated.model_copy()

    async def delete_debt(self, debt_id: UUID) -> DebtTracker:
        async with self._db.transaction("debts") as state:
            index = _find(state.debts, debt_id, "Debt")
            return state.debts.pop(index)

    async def list_expected_income(self) -> list[ExpectedIncome]:
        return self._db.read(lambda s: s.expected_income)

    async def add_income(self, income: ExpectedIncome) -> ExpectedIncome:
        async with self._db.transaction("expected_income") as state:
            state.expected_income.append(income.model_copy())
        return income

    async def edit_income(self, income: ExpectedIncome) -> ExpectedIncome:
        async with self._db.transaction("expected_income") as state:
            index = _find(state.expected_income, income.id, "Expected income")
            state.expected_income[index] = income.model_copy()
        return income

    async def delete_income(self, income_id: UUID) -> ExpectedIncome:
        async with self._db.transaction("expected_income") as state:
            index = _find(state.expected_income, income_id, "Expected income")
            return state.expected_income.pop(index)

    async def clear_income(self, income_id: UUID) -> tuple[ExpectedIncome, CashBalance]:
        async with self._db.transaction("expected_income", "balance") as state:
            index = _find(state.expected_income, income_id, "Expected income")
            income = state.expected_income.pop(index)
            state.balance.total += income.amount
            balance = state.balance.model_copy()
        return income, balance

    async def get_daily_spend_state(self) -> DailySpendState:
        return self._db.read(lambda s: s.spend_state)

    async def log_spend(self, label: str, amount: Decimal) -> SpendItem:
        item = SpendItem(label=label, amount=amount)
        async with self._db.transaction("spend_state", "balance") as state:
            state.spend_state.spend_list.append(item)
            state.balance.total -= item.amount
        return item.model_copy()

    async def delete_spend(self, item_id: UUID) -> SpendItem:
        async with self._db.transaction("spend_state", "balance") as state:
            index = _find(state.spend_state.spend_list, item_id, "Spend item")
            item = state.spend_state.spend_list.pop(index)
            state.balance.total += item.amount
        return item

    async def reset_day(self, day: date) -> int:
        async with self._db.transaction("spend_state") as state:
            cleared = len(state.spend_state.spend_list)
            state.spend_state = DailySpendState(day=day)
        return cleared

    async def get_snapshot(self) -> FinanceSnapshot:
        return self._db.read(_finance_snapshot)

    def subscribe(self, callback: Callable[[FinanceSnapshot], None]) -> Unsubscribe:
        return self._db.watch(FINANCE_TABLES, _finance_snapshot, callback)


def _newest_first(items: list) -> list:
    return sorted(items, key=lambda i: i.created_at, reverse=True)


class LocalJournalStorage(JournalStorageInterface):
    """Local implementation of journal storage."""

    def __init__(self, db: LocalDatabase):
        self._db = db

    async def list_entries(self) -> list[JournalEntry]:
        return self._db.read(lambda s: _newest_first(s.entries))

    async def add_entry(self, content: str) -> JournalEntry:
        entry = JournalEntry(content=content)
        async with self._db.transaction("entries") as state:
            state.entries.append(entry)
        return entry.model_copy()

    async def delete_entry(self, entry_id: UUID) -> JournalEntry:
        async with self._db.transaction("entries") as state:
            index = _find(state.entries, entry_id, "Entry")
            return state.entries.pop(index)

    async def search_entries(
        self,
        query: str,
        on_day: Optional[date] = None,
    ) -> list[JournalEntry]:
        needle = query.strip().lower()
        return [
            entry
            for entry in await self.list_entries()
            if needle in entry.content.lower()
            and (on_day is None or entry.created_at.date() == on_day)
        ]

    def subscribe(self, callback: Callable[[list[JournalEntry]], None]) -> Unsubscribe:
        return self._db.watch(
            frozenset({"entries"}), lambda s: _newest_first(s.entries), callback
        )


class LocalTaskStorage(TaskStorageInterface):
    """
    Local implementation of task storage with point scoring.

    Every score change is written in the same transaction as the task
    change that caused it.
    """

    def __init__(
        self,
        db: LocalDatabase,
        settings: Optional[GamificationSettings] = None,
    ):
        self._db = db
        self._settings = settings or get_settings().gamification

    async def list_tasks(self, include_archived: bool = False) -> list[Task]:
        return self._db.read(
            lambda s: _newest_first(
                [t for t in s.tasks if include_archived or not t.is_archived]
            )
        )

    async def add_task(self, label: str, category: Optional[str] = None) -> Task:
        task = Task(label=label, category=category)
        async with self._db.transaction("tasks") as state:
            state.tasks.append(task)
        return task.model_copy()

    async def set_completed(self, task_id: UUID, completed: bool) -> Task:
        async with self._db.transaction("tasks", "points") as state:
            task = state.tasks[_find(state.tasks, task_id, "Task")]
            if task.completed != completed:
                delta = self._settings.task_completed_points
                state.points += delta if completed else -delta
                task.completed = completed
            return task.model_copy()

    async def delete_task(self, task_id: UUID) -> Task:
        async with self._db.transaction("tasks", "points") as state:
            task = state.tasks.pop(_find(state.tasks, task_id, "Task"))
            # Finished tasks keep their reward
            if not task.completed:
                state.points -= self._settings.task_deleted_penalty
        return task

    async def get_points(self) -> int:
        return self._db.read(lambda s: s.points)

    async def judge_day(self) -> tuple[int, int, int]:
        async with self._db.transaction("tasks", "points") as state:
            active = [t for t in state.tasks if not t.is_archived]
            missed = sum(1 for t in active if not t.completed)
            penalty = missed * self._settings.missed_task_penalty

            for task in active:
                task.is_archived = True
            state.points -= penalty

        return len(active), missed, penalty

    def subscribe(self, callback: Callable[[list[Task]], None]) -> Unsubscribe:
        return self._db.watch(
            frozenset({"tasks"}),
            lambda s: _newest_first([t for t in s.tasks if not t.is_archived]),
            callback,
        )


class LocalGoalStorage(GoalStorageInterface):
    """Local implementation of goal storage."""

    def __init__(self, db: LocalDatabase):
        self._db = db

    async def list_goals(self) -> list[Goal]:
        return self._db.read(lambda s: _newest_first(s.goals))

    async def add_goal(self, label: str, horizon: GoalHorizon) -> Goal:
        goal = Goal(label=label, horizon=horizon)
        async with self._db.transaction("goals") as state:
            state.goals.append(goal)
        return goal.model_copy()

    async def toggle_goal(self, goal_id: UUID) -> Goal:
        async with self._db.transaction("goals") as state:
            goal = state.goals[_find(state.goals, goal_id, "Goal")]
            goal.completed = not goal.completed
            return goal.model_copy()

    async def delete_goal(self, goal_id: UUID) -> Goal:
        async with self._db.transaction("goals") as state:
            return state.goals.pop(_find(state.goals, goal_id, "Goal"))

    def subscribe(self, callback: Callable[[list[Goal]], None]) -> Unsubscribe:
        return self._db.watch(
            frozenset({"goals"}), lambda s: _newest_first(s.goals), callback
        )


class LocalBookkeepingStorage(BookkeepingStorageInterface):
    """Local implementation of run markers and usage counters."""

    def __init__(self, db: LocalDatabase):
        self._db = db

    async def get_marker(self, name: str) -> Optional[date]:
        return self._db.read(lambda s: s.markers.get(name))

    async def set_marker(self, name: str, day: date) -> None:
        async with self._db.transaction("markers") as state:
            state.markers[name] = day

    async def get_usage(self, day: date) -> int:
        return self._db.read(
            lambda s: next((u.count for u in s.usage if u.day == day), 0)
        )

    async def increment_usage(self, day: date) -> int:
        async with self._db.transaction("usage") as state:
            entry = next((u for u in state.usage if u.day == day), None)
            if entry is None:
                entry = AdvisorUsage(day=day)
                state.usage.append(entry)
            entry.count += 1
            return entry.count
