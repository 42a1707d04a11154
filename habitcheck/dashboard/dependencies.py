#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck Dashboard - Dependencies
Providers shared by the API routers
"""

import logging
from typing import Optional

from fastapi import Request

from habitcheck.config import TrackerConfig
from habitcheck.core.database import DatabaseManager
from habitcheck.core.store import EntryStore

logger = logging.getLogger(__name__)


def build_entry_store(tracker_config: TrackerConfig) -> EntryStore:
    """Create an initialized store backed by the configured JSON database"""
    database = DatabaseManager(
        data_file=tracker_config.database.path,
        backup_dir=tracker_config.database.backup_dir,
        max_backups=tracker_config.database.max_backups,
        auto_backup=tracker_config.database.auto_backup,
        backup_interval_hours=tracker_config.database.backup_interval_hours
    )
    store = EntryStore(database)
    store.initialize()
    return store


def get_entry_store(request: Request) -> EntryStore:
    """The store owned by the running application"""
    return request.app.state.entry_store


def persistence_warning(store: EntryStore) -> Optional[str]:
    return store.last_persistence_error
