"""
Backup Snapshot Model

The whole local database as one validated document. Used both for
JSON export/import and for the on-disk database file.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from journalme.models.finance import (
    CashBalance,
    DailySpendState,
    DebtTracker,
    ExpectedIncome,
    RecurringObligation,
)
from journalme.models.journal import AdvisorUsage, Goal, JournalEntry, Task


BACKUP_FORMAT_VERSION = "1.0"


class BackupSnapshot(BaseModel):
    """Every table of the local database at one point in time."""

    version: str = BACKUP_FORMAT_VERSION
    backup_date: datetime = Field(default_factory=datetime.now)

    # Journal side
    entries: list[JournalEntry] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    points: int = 100

    # Finance side
    balance: CashBalance = Field(default_factory=CashBalance)
    obligations: list[RecurringObligation] = Field(default_factory=list)
    debts: list[DebtTracker] = Field(default_factory=list)
    expected_income: list[ExpectedIncome] = Field(default_factory=list)
    spend_state: DailySpendState = Field(default_factory=DailySpendState)

    # Bookkeeping
    usage: list[AdvisorUsage] = Field(default_factory=list)
    markers: dict[str, date] = Field(
        default_factory=dict,
        description="Last-run days for boundary jobs (spend reset, task judge, backup)"
    )
