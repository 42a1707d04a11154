#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - Entry Store
Owns the habit and cough log collections and is their only mutation surface.
Every successful mutation is persisted through the storage collaborator; a
failed save is reported as a warning and never rolls back the change.
"""

from typing import Dict, List, Optional, Any, Callable, Mapping, Union
import logging

from habitcheck.core.models import (
    Habit,
    CoughLog,
    HabitPatch,
    CoughLogPatch,
    Snapshot,
    NotFoundError,
    ValidationError,
    validate_date_key,
)
from habitcheck.core.database import DatabaseManager, DatabaseError

logger = logging.getLogger(__name__)

WarningCallback = Callable[[str], None]


class EntryStore:
    """In-memory collections with an explicit initialize/close lifecycle.

    Not thread-safe: a single logical actor is expected to drive mutations.
    """

    def __init__(self, database: DatabaseManager):
        self.database = database
        self._habits: Dict[str, Habit] = {}
        self._cough_logs: Dict[str, CoughLog] = {}
        self.is_initialized = False
        self.last_persistence_error: Optional[str] = None
        self.warning_callbacks: List[WarningCallback] = []

    # ===== LIFECYCLE =====

    def initialize(self) -> "EntryStore":
        habits, cough_logs = self.database.load()
        self._habits = {habit.id: habit for habit in habits}
        self._cough_logs = {log.id: log for log in cough_logs}
        self.is_initialized = True
        logger.info(f"Entry store initialized with {len(self._habits)} habits and {len(self._cough_logs)} cough logs")
        return self

    def close(self) -> None:
        if not self.is_initialized:
            return
        self._persist()
        self.database.shutdown()
        self.is_initialized = False
        logger.info("Entry store closed")

    def __enter__(self) -> "EntryStore":
        return self.initialize()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def add_warning_callback(self, callback: WarningCallback) -> None:
        """Register a listener for non-fatal persistence failures"""
        self.warning_callbacks.append(callback)

    # ===== READS =====

    def get_habits(self) -> List[Habit]:
        return list(self._habits.values())

    def get_cough_logs(self) -> List[CoughLog]:
        return list(self._cough_logs.values())

    def get_habit(self, habit_id: str) -> Habit:
        habit = self._habits.get(habit_id)
        if habit is None:
            raise NotFoundError("Habit", habit_id)
        return habit

    def get_cough_log(self, log_id: str) -> CoughLog:
        log = self._cough_logs.get(log_id)
        if log is None:
            raise NotFoundError("CoughLog", log_id)
        return log

    def snapshot(self) -> Snapshot:
        """Atomic copy of both collections for aggregation"""
        return Snapshot.capture(self._habits.values(), self._cough_logs.values())

    # ===== HABITS =====

    def add_habit(self, draft: Mapping[str, Any]) -> Habit:
        habit = Habit.create(draft)
        self._habits[habit.id] = habit
        logger.info(f"Habit added: {habit.name} ({habit.id})")
        self._persist()
        return habit

    def update_habit(self, habit_id: str, patch: Union[HabitPatch, Mapping[str, Any]]) -> Habit:
        """Merge the patch into the habit; entries are kept unless the patch carries them"""
        if not isinstance(patch, HabitPatch):
            patch = HabitPatch.from_dict(patch)
        habit = patch.apply(self.get_habit(habit_id))
        self._habits[habit_id] = habit
        logger.info(f"Habit updated: {habit.name} ({habit_id})")
        self._persist()
        return habit

    def delete_habit(self, habit_id: str) -> None:
        """Remove the habit and all of its entries; unknown ids raise NotFoundError"""
        habit = self.get_habit(habit_id)
        del self._habits[habit_id]
        logger.info(f"Habit deleted: {habit.name} ({habit_id}), {len(habit.entries)} entries dropped")
        self._persist()

    def log_habit_entry(self, habit_id: str, date_key: str, completed: bool, notes: str = "") -> Habit:
        """Upsert the entry for one day; other days are never touched"""
        habit = self.get_habit(habit_id)
        validate_date_key(date_key)
        if not isinstance(completed, bool):
            raise ValidationError("completed must be a boolean")
        habit.set_entry(date_key, completed, notes or "")
        logger.debug(f"Entry logged for {habit_id} on {date_key}: completed={completed}")
        self._persist()
        return habit

    def toggle_habit_completion(self, habit_id: str, date_key: str) -> Habit:
        """Flip completion for a day, keeping the notes already written"""
        habit = self.get_habit(habit_id)
        validate_date_key(date_key)
        entry = habit.get_entry(date_key)
        completed = entry.completed if entry else False
        notes = entry.notes if entry else ""
        return self.log_habit_entry(habit_id, date_key, not completed, notes)

    def save_habit_notes(self, habit_id: str, date_key: str, notes: str) -> Habit:
        """Set notes for a day, keeping the completion flag already recorded"""
        habit = self.get_habit(habit_id)
        validate_date_key(date_key)
        entry = habit.get_entry(date_key)
        completed = entry.completed if entry else False
        return self.log_habit_entry(habit_id, date_key, completed, notes)

    # ===== COUGH LOGS =====

    def add_cough_log(self, draft: Mapping[str, Any]) -> CoughLog:
        log = CoughLog.create(draft)
        self._cough_logs[log.id] = log
        logger.info(f"Cough log added: severity {log.severity} at {log.timestamp.isoformat()} ({log.id})")
        self._persist()
        return log

    def update_cough_log(self, log_id: str, patch: Union[CoughLogPatch, Mapping[str, Any]]) -> CoughLog:
        if not isinstance(patch, CoughLogPatch):
            patch = CoughLogPatch.from_dict(patch)
        log = patch.apply(self.get_cough_log(log_id))
        self._cough_logs[log_id] = log
        logger.info(f"Cough log updated: {log_id}")
        self._persist()
        return log

    def delete_cough_log(self, log_id: str) -> None:
        self.get_cough_log(log_id)
        del self._cough_logs[log_id]
        logger.info(f"Cough log deleted: {log_id}")
        self._persist()

    # ===== PERSISTENCE =====

    def _persist(self) -> None:
        try:
            self.database.save(self.get_habits(), self.get_cough_logs())
        except (DatabaseError, OSError) as e:
            message = f"Changes are kept for this session but could not be saved: {e}"
            logger.warning(message)
            self.last_persistence_error = message
            for callback in self.warning_callbacks:
                callback(message)
            return

        self.last_persistence_error = None


__all__ = ['EntryStore', 'WarningCallback']
