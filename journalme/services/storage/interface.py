"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Keep the liquidity engine decoupled from persistence
2. Use the in-process database for both the app and tests
3. Swap in a synced backend later without touching business logic

Every interface exposes a subscribe() primitive: the callback receives
the current value immediately and again after every committed write
that touches the data it depends on.

IMPORTANT: Implementations must serialise writes. Spend logging and
income clearing both move the balance; two UI surfaces writing at once
must not lose an update.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from journalme.models.finance import (
    CashBalance,
    DailySpendState,
    DebtTracker,
    ExpectedIncome,
    FinanceSnapshot,
    RecurringObligation,
    SpendItem,
)
from journalme.models.journal import Goal, GoalHorizon, JournalEntry, Task


Unsubscribe = Callable[[], None]


class FinanceStorageInterface(ABC):
    """
    Abstract interface for balance, obligations, debts, income and
    today's spend log.
    """

    # --- Balance ---

    @abstractmethod
    async def get_balance(self) -> CashBalance:
        """Get the current cash balance."""
        pass

    @abstractmethod
    async def set_balance(self, total: Decimal) -> CashBalance:
        """
        Overwrite the cash balance.

        Returns:
            The new balance
        """
        pass

    # --- Recurring obligations ---

    @abstractmethod
    async def list_obligations(self) -> list[RecurringObligation]:
        """List obligations ordered by day of month."""
        pass

    @abstractmethod
    async def add_obligation(self, obligation: RecurringObligation) -> RecurringObligation:
        pass

    @abstractmethod
    async def update_obligation(self, obligation: RecurringObligation) -> RecurringObligation:
        """
        Replace an obligation's definition.

        Raises:
            NotFoundError: If the obligation doesn't exist
        """
        pass

    @abstractmethod
    async def delete_obligation(self, obligation_id: UUID) -> RecurringObligation:
        """
        Delete an obligation.

        Returns:
            The deleted obligation

        Raises:
            NotFoundError: If the obligation doesn't exist
        """
        pass

    # --- Debts ---

    @abstractmethod
    async def list_debts(self) -> list[DebtTracker]:
        pass

    @abstractmethod
    async def add_debt(self, debt: DebtTracker) -> DebtTracker:
        pass

    @abstractmethod
    async def log_debt_payment(self, debt_id: UUID, payment: Decimal) -> DebtTracker:
        """
        Add a payment to a debt's running total.

        A negative payment corrects an earlier entry; the paid total
        may never drop below zero.

        Returns:
            The updated debt

        Raises:
            NotFoundError: If the debt doesn't exist
        """
        pass

    @abstractmethod
    async def delete_debt(self, debt_id: UUID) -> DebtTracker:
        pass

    # --- Expected income ---

    @abstractmethod
    async def list_expected_income(self) -> list[ExpectedIncome]:
        pass

    @abstractmethod
    async def add_income(self, income: ExpectedIncome) -> ExpectedIncome:
        pass

    @abstractmethod
    async def edit_income(self, income: ExpectedIncome) -> ExpectedIncome:
        """
        Replace a pending income entry (matched by id).

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        pass

    @abstractmethod
    async def delete_income(self, income_id: UUID) -> ExpectedIncome:
        """Drop a pending income entry without touching the balance."""
        pass

    @abstractmethod
    async def clear_income(self, income_id: UUID) -> tuple[ExpectedIncome, CashBalance]:
        """
        Confirm receipt: remove the entry and add its amount to the balance.

        Both changes happen in one write.

        Returns:
            (cleared_income, new_balance)
        """
        pass

    # --- Daily spend log ---

    @abstractmethod
    async def get_daily_spend_state(self) -> DailySpendState:
        pass

    @abstractmethod
    async def log_spend(self, label: str, amount: Decimal) -> SpendItem:
        """
        Append a spend and take its amount off the balance in one write.

        Returns:
            The logged item
        """
        pass

    @abstractmethod
    async def delete_spend(self, item_id: UUID) -> SpendItem:
        """
        Reverse a spend: remove it and give its amount back to the balance.

        Raises:
            NotFoundError: If the item isn't in today's log
        """
        pass

    @abstractmethod
    async def reset_day(self, day: date) -> int:
        """
        Clear today's spend log and stamp it with ``day``.

        Returns:
            Number of spend items cleared
        """
        pass

    # --- Reactive ---

    @abstractmethod
    async def get_snapshot(self) -> FinanceSnapshot:
        """Read every finance table in one consistent read."""
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[FinanceSnapshot], None]) -> Unsubscribe:
        """Call ``callback`` with a fresh snapshot now and after every finance write."""
        pass


class JournalStorageInterface(ABC):
    """Abstract interface for free-text journal entries."""

    @abstractmethod
    async def list_entries(self) -> list[JournalEntry]:
        """List entries, newest first."""
        pass

    @abstractmethod
    async def add_entry(self, content: str) -> JournalEntry:
        pass

    @abstractmethod
    async def delete_entry(self, entry_id: UUID) -> JournalEntry:
        pass

    @abstractmethod
    async def search_entries(
        self,
        query: str,
        on_day: Optional[date] = None,
    ) -> list[JournalEntry]:
        """
        Case-insensitive substring search.

        Args:
            query: Text to look for (empty matches everything)
            on_day: Only entries created on this calendar day
        """
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[list[JournalEntry]], None]) -> Unsubscribe:
        pass


class TaskStorageInterface(ABC):
    """
    Abstract interface for discipline tasks and their point score.

    Scoring rules live with the storage so that a task change and its
    score change are always written together.
    """

    @abstractmethod
    async def list_tasks(self, include_archived: bool = False) -> list[Task]:
        """List tasks, newest first."""
        pass

    @abstractmethod
    async def add_task(self, label: str, category: Optional[str] = None) -> Task:
        pass

    @abstractmethod
    async def set_completed(self, task_id: UUID, completed: bool) -> Task:
        """Mark a task done (+points) or not done (points revoked)."""
        pass

    @abstractmethod
    async def delete_task(self, task_id: UUID) -> Task:
        """Delete a task; giving up on an unfinished one costs points."""
        pass

    @abstractmethod
    async def get_points(self) -> int:
        pass

    @abstractmethod
    async def judge_day(self) -> tuple[int, int, int]:
        """
        Archive every active task and charge for the unfinished ones.

        Returns:
            (archived_count, missed_count, penalty_applied)
        """
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[list[Task]], None]) -> Unsubscribe:
        pass


class GoalStorageInterface(ABC):
    """Abstract interface for weekly/monthly/yearly goals."""

    @abstractmethod
    async def list_goals(self) -> list[Goal]:
        """List goals, newest first."""
        pass

    @abstractmethod
    async def add_goal(self, label: str, horizon: GoalHorizon) -> Goal:
        pass

    @abstractmethod
    async def toggle_goal(self, goal_id: UUID) -> Goal:
        pass

    @abstractmethod
    async def delete_goal(self, goal_id: UUID) -> Goal:
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[list[Goal]], None]) -> Unsubscribe:
        pass


class BookkeepingStorageInterface(ABC):
    """
    Abstract interface for small bookkeeping values: last-run markers for
    day-boundary jobs and the advisor's per-day usage counter.
    """

    @abstractmethod
    async def get_marker(self, name: str) -> Optional[date]:
        pass

    @abstractmethod
    async def set_marker(self, name: str, day: date) -> None:
        pass

    @abstractmethod
    async def get_usage(self, day: date) -> int:
        pass

    @abstractmethod
    async def increment_usage(self, day: date) -> int:
        """Bump the usage counter for ``day`` and return the new count."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class BackupFormatError(StorageError):
    """A backup document could not be read."""
    pass
