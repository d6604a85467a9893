"""
Data Models Package

This package contains all Pydantic models used in JournalMe.
All data flowing through the system must conform to these schemas.
"""

from journalme.models.finance import (
    CashBalance,
    DailySpendState,
    DebtTracker,
    ExpectedIncome,
    FinanceSnapshot,
    LiquidityReport,
    ObligationSchedule,
    RecurringObligation,
    SpendItem,
)
from journalme.models.journal import (
    AdvisorUsage,
    Goal,
    GoalHorizon,
    JournalEntry,
    Task,
)
from journalme.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from journalme.models.backup import BACKUP_FORMAT_VERSION, BackupSnapshot

__all__ = [
    # Finance models
    "CashBalance",
    "DailySpendState",
    "DebtTracker",
    "ExpectedIncome",
    "FinanceSnapshot",
    "LiquidityReport",
    "ObligationSchedule",
    "RecurringObligation",
    "SpendItem",
    # Journal models
    "AdvisorUsage",
    "Goal",
    "GoalHorizon",
    "JournalEntry",
    "Task",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
    # Backup
    "BACKUP_FORMAT_VERSION",
    "BackupSnapshot",
]
