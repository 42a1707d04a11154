#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - Aggregation Engine
Read-only functions turning a snapshot of habits and cough logs into the
figures shown on the dashboard. Nothing here mutates its inputs.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Any, Iterable, Sequence, Optional, Union

from habitcheck.core.models import Habit, CoughLog, Snapshot, validate_timestamp
from habitcheck.utils.datetime_utils import date_key, ensure_aware, format_activity_time, now_local

RECENT_WINDOW_DAYS = 7
TOP_TRIGGERS_LIMIT = 3
RECENT_ACTIVITY_LIMIT = 5

# ===== RESULT TYPES =====

@dataclass(frozen=True)
class TriggerCount:
    trigger: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {'trigger': self.trigger, 'count': self.count}


@dataclass(frozen=True)
class ActivityItem:
    id: str
    timestamp: datetime
    severity: int
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'severity': self.severity,
            'label': self.label
        }


@dataclass
class DashboardStats:
    total_habits: int = 0
    habit_completion_rate: int = 0
    total_cough_incidents: int = 0
    recent_cough_incidents: int = 0
    top_triggers: List[TriggerCount] = field(default_factory=list)
    recent_activity: List[ActivityItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_habits': self.total_habits,
            'habit_completion_rate': self.habit_completion_rate,
            'total_cough_incidents': self.total_cough_incidents,
            'recent_cough_incidents': self.recent_cough_incidents,
            'top_triggers': [item.to_dict() for item in self.top_triggers],
            'recent_activity': [item.to_dict() for item in self.recent_activity]
        }

# ===== HELPERS =====

def round_half_up(value: Union[Decimal, float]) -> int:
    """Round .5 away from zero; the builtin round() rounds half to even"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _log_timestamp(log: CoughLog) -> datetime:
    # Snapshots built from raw data may carry strings; malformed ones fail fast
    return validate_timestamp(log.timestamp)


def _triggers_of(log: CoughLog) -> Sequence[str]:
    return getattr(log, 'possible_triggers', None) or ()


def _entries_of(habit: Habit) -> Dict[str, Any]:
    return getattr(habit, 'entries', None) or {}

# ===== COMPLETION =====

def completed_count(habits: Iterable[Habit], day_key: str) -> int:
    count = 0
    for habit in habits:
        entry = _entries_of(habit).get(day_key)
        if entry is not None and entry.completed:
            count += 1
    return count


def completion_rate(habits: Sequence[Habit], now: datetime) -> int:
    """Percentage of habits completed on the calendar day of `now`, 0 when there are none"""
    total = len(habits)
    if total == 0:
        return 0
    done = completed_count(habits, date_key(now))
    # Exact ratio; 23/40*100 in floats is 57.49999999999999
    return round_half_up(Decimal(done * 100) / Decimal(total))


def current_streak(habit: Habit, now: datetime) -> int:
    """Consecutive completed days ending today, or ending yesterday while today is still open"""
    entries = _entries_of(habit)

    def done(day) -> bool:
        entry = entries.get(date_key(day))
        return bool(entry and entry.completed)

    day = now.date()
    if not done(day):
        day -= timedelta(days=1)

    streak = 0
    while done(day):
        streak += 1
        day -= timedelta(days=1)
    return streak

# ===== COUGH LOGS =====

def recent_cough_logs(cough_logs: Iterable[CoughLog], now: datetime,
                      days: int = RECENT_WINDOW_DAYS) -> List[CoughLog]:
    """Logs with now - days <= timestamp <= now; both bounds count as recent"""
    now = ensure_aware(now)
    start = now - timedelta(days=days)
    return [log for log in cough_logs if start <= _log_timestamp(log) <= now]


def rank_triggers(cough_logs: Iterable[CoughLog], limit: int = TOP_TRIGGERS_LIMIT) -> List[TriggerCount]:
    """Most frequent triggers, every occurrence counted; ties go to the alphabetically first label"""
    counts = Counter()
    for log in cough_logs:
        for trigger in _triggers_of(log):
            counts[trigger] += 1

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [TriggerCount(trigger, count) for trigger, count in ranked[:limit]]


def recent_activity(cough_logs: Iterable[CoughLog], limit: int = RECENT_ACTIVITY_LIMIT) -> List[ActivityItem]:
    """The latest logs by timestamp across the whole collection, newest first"""
    stamped = [(_log_timestamp(log), log) for log in cough_logs]
    stamped.sort(key=lambda pair: (pair[0], pair[1].id), reverse=True)
    return [
        ActivityItem(
            id=log.id,
            timestamp=timestamp,
            severity=log.severity,
            label=format_activity_time(timestamp)
        )
        for timestamp, log in stamped[:limit]
    ]

# ===== DASHBOARD =====

def compute_dashboard_stats(habits: Sequence[Habit], cough_logs: Sequence[CoughLog],
                            now: Optional[datetime] = None) -> DashboardStats:
    now = ensure_aware(now) if now is not None else now_local()

    recent = recent_cough_logs(cough_logs, now)
    return DashboardStats(
        total_habits=len(habits),
        habit_completion_rate=completion_rate(habits, now),
        total_cough_incidents=len(cough_logs),
        recent_cough_incidents=len(recent),
        top_triggers=rank_triggers(recent),
        recent_activity=recent_activity(cough_logs)
    )


def compute_snapshot_stats(snapshot: Snapshot, now: Optional[datetime] = None) -> DashboardStats:
    return compute_dashboard_stats(snapshot.habits, snapshot.cough_logs, now)


def compute_streaks(habits: Iterable[Habit], now: datetime) -> List[Dict[str, Any]]:
    return [
        {'habit_id': habit.id, 'name': habit.name, 'streak': current_streak(habit, now)}
        for habit in habits
    ]


__all__ = [
    'RECENT_WINDOW_DAYS',
    'TOP_TRIGGERS_LIMIT',
    'RECENT_ACTIVITY_LIMIT',
    'TriggerCount',
    'ActivityItem',
    'DashboardStats',
    'round_half_up',
    'completed_count',
    'completion_rate',
    'current_streak',
    'recent_cough_logs',
    'rank_triggers',
    'recent_activity',
    'compute_dashboard_stats',
    'compute_snapshot_stats',
    'compute_streaks'
]
