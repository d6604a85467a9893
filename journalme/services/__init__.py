"""Services package."""

from journalme.services.backup import (
    BackupCodec,
    backup_filename,
    needs_auto_backup,
)
from journalme.services.storage import (
    BackupFormatError,
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
    NotFoundError,
    StorageError,
    TaskStorageInterface,
)

__all__ = [
    # Backup
    "BackupCodec",
    "backup_filename",
    "needs_auto_backup",
    # Storage services
    "BackupFormatError",
    "BookkeepingStorageInterface",
    "FinanceStorageInterface",
    "GoalStorageInterface",
    "JournalStorageInterface",
    "LocalBookkeepingStorage",
    "LocalDatabase",
    "LocalFinanceStorage",
    "LocalGoalStorage",
    "LocalJournalStorage",
    "LocalTaskStorage",
    "NotFoundError",
    "StorageError",
    "TaskStorageInterface",
]
