"""
Storage Services Package

Provides abstract interfaces and the local (in-process, file-backed)
implementation. Designed to be swappable.
"""

from journalme.services.storage.interface import (
    BackupFormatError,
    BookkeepingStorageInterface,
    FinanceStorageInterface,
    GoalStorageInterface,
    JournalStorageInterface,
    NotFoundError,
    StorageError,
    TaskStorageInterface,
)
from journalme.services.storage.local import (
    LocalBookkeepingStorage,
    LocalDatabase,
    LocalFinanceStorage,
    LocalGoalStorage,
    LocalJournalStorage,
    LocalTaskStorage,
)

__all__ = [
    # Interfaces
    "BookkeepingStorageInterface",
    "FinanceStorageInterface",
    "GoalStorageInterface",
    "JournalStorageInterface",
    "TaskStorageInterface",
    # Exceptions
    "BackupFormatError",
    "NotFoundError",
    "StorageError",
    # Local implementation
    "LocalBookkeepingStorage",
    "LocalDatabase",
    "LocalFinanceStorage",
    "LocalGoalStorage",
    "LocalJournalStorage",
    "LocalTaskStorage",
]
