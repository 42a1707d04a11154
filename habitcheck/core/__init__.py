#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - Core Package
Data models, the entry store, the JSON database and the aggregation engine
"""

from .models import (
    HabitCategory,
    HabitFrequency,
    HabitCheckError,
    ValidationError,
    NotFoundError,
    HabitEntry,
    Habit,
    CoughLog,
    HabitPatch,
    CoughLogPatch,
    Snapshot
)

from .database import (
    DatabaseError,
    DatabaseCorruptionError,
    DatabaseManager
)

from .store import EntryStore

from .analytics import (
    TriggerCount,
    ActivityItem,
    DashboardStats,
    compute_dashboard_stats,
    compute_snapshot_stats
)

__all__ = [
    # Models
    'HabitCategory',
    'HabitFrequency',
    'HabitEntry',
    'Habit',
    'CoughLog',
    'HabitPatch',
    'CoughLogPatch',
    'Snapshot',

    # Errors
    'HabitCheckError',
    'ValidationError',
    'NotFoundError',
    'DatabaseError',
    'DatabaseCorruptionError',

    # Storage
    'DatabaseManager',
    'EntryStore',

    # Analytics
    'TriggerCount',
    'ActivityItem',
    'DashboardStats',
    'compute_dashboard_stats',
    'compute_snapshot_stats'
]
