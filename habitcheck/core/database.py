#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - JSON Database
File-backed storage for the habit and cough log collections, with atomic
writes, schema migrations and compressed backups
"""

import json
import threading
import time
import shutil
import gzip
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from habitcheck.core.models import Habit, CoughLog, HabitCheckError
from habitcheck.config import config

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Base exception for storage failures"""
    pass


class DatabaseCorruptionError(DatabaseError):
    """The data file could not be parsed"""
    pass

# ===== HELPER CLASSES =====

@dataclass
class DatabaseStats:
    """Storage statistics"""
    total_habits: int = 0
    total_entries: int = 0
    total_cough_logs: int = 0
    database_size_mb: float = 0.0
    last_backup: Optional[str] = None
    last_save: Optional[str] = None
    save_count: int = 0
    load_count: int = 0
    error_count: int = 0
    skipped_records: int = 0
    uptime_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_habits': self.total_habits,
            'total_entries': self.total_entries,
            'total_cough_logs': self.total_cough_logs,
            'database_size_mb': round(self.database_size_mb, 2),
            'last_backup': self.last_backup,
            'last_save': self.last_save,
            'save_count': self.save_count,
            'load_count': self.load_count,
            'error_count': self.error_count,
            'skipped_records': self.skipped_records,
            'uptime_hours': round(self.uptime_seconds / 3600, 2)
        }


class BackupManager:
    """Compressed backups of the data file"""

    def __init__(self, backup_dir: Path, max_backups: int = 10):
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups

    def create_backup(self, source_file: Path, compressed: bool = True) -> Optional[Path]:
        """Create a backup; returns None when there is nothing to back up"""
        if not source_file.exists():
            logger.warning(f"Source file {source_file} does not exist for backup")
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        backup_name = f"backup_{timestamp}.json"

        if compressed:
            backup_path = self.backup_dir / (backup_name + ".gz")
            with open(source_file, 'rb') as f_in:
                with gzip.open(backup_path, 'wb') as f_out:
                    shutil.copyfileobj(f_in, f_out)
        else:
            backup_path = self.backup_dir / backup_name
            shutil.copy2(source_file, backup_path)

        logger.info(f"Backup created: {backup_path}")
        self._cleanup_old_backups()
        return backup_path

    def restore_backup(self, backup_path: Path, target_file: Path) -> None:
        """Restore a backup over the target file"""
        if not backup_path.exists():
            raise DatabaseError(f"Backup file {backup_path} does not exist")

        if target_file.exists():
            safety_backup = target_file.with_suffix('.safety_backup.json')
            shutil.copy2(target_file, safety_backup)
            logger.info(f"Safety backup created: {safety_backup}")

        if backup_path.name.endswith('.gz'):
            with gzip.open(backup_path, 'rb') as f_in:
                with open(target_file, 'wb') as f_out:
                    shutil.copyfileobj(f_in, f_out)
        else:
            shutil.copy2(backup_path, target_file)

        logger.info(f"Backup restored from {backup_path} to {target_file}")

    def read_backup(self, backup_path: Path) -> str:
        """Contents of a backup without touching the live file"""
        if not backup_path.exists():
            raise DatabaseError(f"Backup file {backup_path} does not exist")

        if backup_path.name.endswith('.gz'):
            with gzip.open(backup_path, 'rt', encoding='utf-8') as f:
                return f.read()
        with open(backup_path, 'r', encoding='utf-8') as f:
            return f.read()

    def list_backups(self) -> List[Dict[str, Any]]:
        """List backups, newest first"""
        if not self.backup_dir.exists():
            return []

        backups = []
        for backup_file in self.backup_dir.glob("backup_*.json*"):
            stat = backup_file.stat()
            backups.append({
                'name': backup_file.name,
                'path': str(backup_file),
                'size_mb': stat.st_size / (1024 * 1024),
                'created': datetime.fromtimestamp(stat.st_mtime).isoformat(),
                'compressed': backup_file.name.endswith('.gz')
            })

        # Names embed the creation time, so they sort chronologically
        return sorted(backups, key=lambda x: x['name'], reverse=True)

    def _cleanup_old_backups(self) -> None:
        backups = sorted(self.backup_dir.glob("backup_*.json*"), key=lambda p: p.name, reverse=True)
        for backup in backups[self.max_backups:]:
            backup.unlink()
            logger.info(f"Removed old backup: {backup}")


class DatabaseMigration:
    """Schema versioning of the data document"""

    VERSION_KEY = "__database_version__"
    CURRENT_VERSION = "2"

    @classmethod
    def get_version(cls, data: Dict[str, Any]) -> str:
        return str(data.get(cls.VERSION_KEY, "1"))

    @classmethod
    def set_version(cls, data: Dict[str, Any], version: str) -> None:
        data[cls.VERSION_KEY] = version

    @classmethod
    def needs_migration(cls, data: Dict[str, Any]) -> bool:
        return cls.get_version(data) != cls.CURRENT_VERSION

    @classmethod
    def migrate(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        current_version = cls.get_version(data)
        logger.info(f"Migrating database from version {current_version} to {cls.CURRENT_VERSION}")

        if current_version == "1":
            data = cls._migrate_from_1(data)
        else:
            raise DatabaseError(f"Unknown database version: {current_version}")

        cls.set_version(data, cls.CURRENT_VERSION)
        logger.info("Database migration completed successfully")
        return data

    @classmethod
    def _migrate_from_1(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Version 1 used camelCase keys (dateCreated, coughLogs, possibleTriggers)"""
        habits = []
        for habit in data.get('habits') or []:
            if not isinstance(habit, dict):
                habits.append(habit)
                continue
            habit = dict(habit)
            if 'dateCreated' in habit:
                habit.setdefault('date_created', habit.pop('dateCreated'))
            habit.setdefault('entries', {})
            habits.append(habit)

        cough_logs = []
        for log in data.get('coughLogs', data.get('cough_logs')) or []:
            if not isinstance(log, dict):
                cough_logs.append(log)
                continue
            log = dict(log)
            if 'possibleTriggers' in log:
                log.setdefault('possible_triggers', log.pop('possibleTriggers'))
            cough_logs.append(log)

        return {'habits': habits, 'cough_logs': cough_logs}


class DatabaseManager:
    """Loads and saves both collections as a single JSON document"""

    def __init__(self, data_file: Optional[Path] = None, backup_dir: Optional[Path] = None,
                 max_backups: Optional[int] = None, auto_backup: Optional[bool] = None,
                 backup_interval_hours: Optional[int] = None, read_only: bool = False):
        """A read-only manager migrates and recovers in memory and never writes the data file"""
        self.data_file = Path(data_file or config.database.path)
        self.backup_manager = BackupManager(
            backup_dir or config.database.backup_dir,
            max_backups or config.database.max_backups
        )
        self.auto_backup = config.database.auto_backup if auto_backup is None else auto_backup
        self.backup_interval_hours = backup_interval_hours or config.database.backup_interval_hours
        self.read_only = read_only

        self.file_lock = threading.RLock()
        self.stats = DatabaseStats()
        self.start_time = time.time()
        self.scheduler: Optional[BackgroundScheduler] = None

    # ===== SCHEDULER =====

    def start_scheduler(self) -> None:
        """Start periodic backups when enabled"""
        if not self.auto_backup or self.scheduler is not None:
            return

        self.scheduler = BackgroundScheduler()
        self.scheduler.add_job(
            self._periodic_backup,
            IntervalTrigger(hours=self.backup_interval_hours),
            id='periodic_backup',
            replace_existing=True
        )
        self.scheduler.start()
        logger.info(f"Backup scheduler started (every {self.backup_interval_hours}h)")

    def _periodic_backup(self) -> None:
        try:
            self.create_backup()
        except OSError as e:
            self.stats.error_count += 1
            logger.error(f"Periodic backup failed: {e}")

    def shutdown(self) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None
        logger.info("Database manager shut down")

    # ===== LOAD =====

    def load(self) -> Tuple[List[Habit], List[CoughLog]]:
        """Read both collections; a missing file yields empty collections"""
        if not self.data_file.exists():
            logger.info("Database file does not exist, starting with empty collections")
            self.stats.load_count += 1
            return [], []

        try:
            data = self._read_document(self.data_file)
        except DatabaseCorruptionError as e:
            logger.error(f"Database file is corrupted: {e}")
            data = self._recover_from_backup()

        return self._parse_document(data)

    def _read_document(self, path: Path) -> Dict[str, Any]:
        with self.file_lock:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    text = f.read()
            except OSError as e:
                raise DatabaseError(f"Failed to read {path}: {e}")

        data = self._decode_document(text)

        if DatabaseMigration.needs_migration(data):
            logger.info("Database migration required")
            if self.read_only:
                return DatabaseMigration.migrate(data)
            try:
                self.backup_manager.create_backup(path)
                data = DatabaseMigration.migrate(data)
                self._write_document(data)
            except (OSError, TypeError, ValueError) as e:
                self.stats.error_count += 1
                raise DatabaseError(f"Failed to write migrated database: {e}")

        return data

    def _decode_document(self, text: str) -> Dict[str, Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DatabaseCorruptionError(str(e))

        if not isinstance(data, dict):
            raise DatabaseCorruptionError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    def _recover_from_backup(self) -> Dict[str, Any]:
        logger.warning("Attempting to recover from database corruption...")

        for backup in self.backup_manager.list_backups():
            backup_path = Path(backup['path'])
            try:
                if self.read_only:
                    data = self._decode_document(self.backup_manager.read_backup(backup_path))
                    if DatabaseMigration.needs_migration(data):
                        data = DatabaseMigration.migrate(data)
                else:
                    self.backup_manager.restore_backup(backup_path, self.data_file)
                    data = self._read_document(self.data_file)
            except (DatabaseError, OSError, EOFError) as e:
                logger.warning(f"Failed to restore from backup {backup['name']}: {e}")
                continue
            logger.info(f"Successfully restored from backup: {backup['name']}")
            return data

        logger.warning("Could not restore from any backup, starting with empty collections")
        self.stats.error_count += 1
        return {}

    def _parse_document(self, data: Dict[str, Any]) -> Tuple[List[Habit], List[CoughLog]]:
        habits = []
        for idx, habit_data in enumerate(data.get('habits') or []):
            try:
                habits.append(Habit.from_dict(habit_data))
            except (HabitCheckError, AttributeError, TypeError) as e:
                logger.warning(f"Skipping invalid habit record {idx}: {e}")
                self.stats.skipped_records += 1

        cough_logs = []
        for idx, log_data in enumerate(data.get('cough_logs') or []):
            try:
                cough_logs.append(CoughLog.from_dict(log_data))
            except (HabitCheckError, AttributeError, TypeError) as e:
                logger.warning(f"Skipping invalid cough log record {idx}: {e}")
                self.stats.skipped_records += 1

        self.stats.load_count += 1
        self._update_stats(habits, cough_logs)
        logger.info(f"Loaded {len(habits)} habits and {len(cough_logs)} cough logs")
        return habits, cough_logs

    # ===== SAVE =====

    def save(self, habits: List[Habit], cough_logs: List[CoughLog]) -> None:
        """Persist both collections; raises DatabaseError on failure"""
        if self.read_only:
            raise DatabaseError(f"Database {self.data_file} is opened read-only")

        data = {
            'habits': [habit.to_dict() for habit in habits],
            'cough_logs': [log.to_dict() for log in cough_logs]
        }
        DatabaseMigration.set_version(data, DatabaseMigration.CURRENT_VERSION)

        try:
            self._write_document(data)
        except (OSError, TypeError, ValueError) as e:
            self.stats.error_count += 1
            raise DatabaseError(f"Failed to save database: {e}")

        self._update_stats(habits, cough_logs)

    def _write_document(self, data: Dict[str, Any]) -> None:
        """Atomic write through a temporary file"""
        with self.file_lock:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.data_file.with_suffix('.tmp')

            try:
                with open(temp_file, 'w', encoding='utf-8') as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)

                # Integrity check before replacing the live file
                with open(temp_file, 'r', encoding='utf-8') as f:
                    json.load(f)

                temp_file.replace(self.data_file)
            except Exception:
                if temp_file.exists():
                    temp_file.unlink()
                raise

            self.stats.save_count += 1
            self.stats.last_save = datetime.now().isoformat()

    # ===== BACKUPS =====

    def create_backup(self, compressed: bool = True) -> Optional[Path]:
        with self.file_lock:
            backup_path = self.backup_manager.create_backup(self.data_file, compressed)
        if backup_path:
            self.stats.last_backup = datetime.now().isoformat()
        return backup_path

    def restore_backup(self, backup_path: Path) -> Tuple[List[Habit], List[CoughLog]]:
        """Restore a backup and return the collections it holds"""
        with self.file_lock:
            self.backup_manager.restore_backup(Path(backup_path), self.data_file)
        return self.load()

    def get_backups(self) -> List[Dict[str, Any]]:
        return self.backup_manager.list_backups()

    # ===== STATS =====

    def _update_stats(self, habits: List[Habit], cough_logs: List[CoughLog]) -> None:
        self.stats.total_habits = len(habits)
        self.stats.total_entries = sum(len(habit.entries) for habit in habits)
        self.stats.total_cough_logs = len(cough_logs)
        self.stats.uptime_seconds = int(time.time() - self.start_time)
        if self.data_file.exists():
            self.stats.database_size_mb = self.data_file.stat().st_size / (1024 * 1024)

    def get_stats(self) -> Dict[str, Any]:
        self.stats.uptime_seconds = int(time.time() - self.start_time)
        return {
            "database": self.stats.to_dict(),
            "backups": len(self.backup_manager.list_backups()),
            "scheduler_running": bool(self.scheduler and self.scheduler.running)
        }


__all__ = [
    'DatabaseError',
    'DatabaseCorruptionError',
    'DatabaseStats',
    'BackupManager',
    'DatabaseMigration',
    'DatabaseManager'
]
