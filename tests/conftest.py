"""Shared fixtures."""

from datetime import date

import pytest

from journalme.config import GamificationSettings, get_settings
from journalme.services.storage import (
    LocalBookkeepingStorage,
    LocalDatabase,
    LocalFinanceStorage,
    LocalGoalStorage,
    LocalJournalStorage,
    LocalTaskStorage,
)
from tests.helpers import FixedClock


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db():
    return LocalDatabase(starting_points=100)


@pytest.fixture
def finance(db):
    return LocalFinanceStorage(db)


@pytest.fixture
def tasks(db):
    return LocalTaskStorage(db, GamificationSettings())


@pytest.fixture
def journal(db):
    return LocalJournalStorage(db)


@pytest.fixture
def goals(db):
    return LocalGoalStorage(db)


@pytest.fixture
def bookkeeping(db):
    return LocalBookkeepingStorage(db)


@pytest.fixture
def clock():
    """Wednesday 5 June 2024 (June has 30 days)."""
    return FixedClock(date(2024, 6, 5))
