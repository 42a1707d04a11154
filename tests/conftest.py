"""
Pytest configuration and shared fixtures for HabitCheck tests.
"""

from datetime import datetime

import pytest
import pytz

from habitcheck.core.database import DatabaseManager
from habitcheck.core.store import EntryStore


@pytest.fixture
def fixed_now():
    """Reference instant used by aggregation tests."""
    return pytz.UTC.localize(datetime(2024, 1, 10, 12, 0, 0))


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "habitcheck.json"


@pytest.fixture
def database(tmp_path, data_file):
    """JSON database in a temporary directory, without the backup scheduler."""
    return DatabaseManager(
        data_file=data_file,
        backup_dir=tmp_path / "backups",
        max_backups=3,
        auto_backup=False
    )


@pytest.fixture
def store(database):
    entry_store = EntryStore(database).initialize()
    yield entry_store
    entry_store.close()


@pytest.fixture
def sample_habit(store):
    return store.add_habit({"name": "Drink water", "description": "8 glasses", "category": "health"})
