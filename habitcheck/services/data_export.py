# services/data_export.py

import json
from datetime import datetime
from pathlib import Path

import pandas as pd

from habitcheck.core.database import DatabaseMigration
from habitcheck.core.models import Snapshot

ENTRY_COLUMNS = ["habit_id", "habit_name", "category", "frequency", "date", "completed", "notes"]
COUGH_LOG_COLUMNS = ["id", "timestamp", "severity", "possible_triggers", "notes"]


def export_to_json(snapshot: Snapshot, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    export_data = {
        "export_info": {
            "format": "json",
            "version": DatabaseMigration.CURRENT_VERSION,
            "exported_at": datetime.now().isoformat(),
            "habits": len(snapshot.habits),
            "cough_logs": len(snapshot.cough_logs)
        },
        **snapshot.to_dict()
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(export_data, f, ensure_ascii=False, indent=2)
    return path


def entries_frame(snapshot: Snapshot) -> pd.DataFrame:
    """One row per habit entry, ordered by habit then date"""
    rows = []
    for habit in snapshot.habits:
        for date_key, entry in sorted(habit.entries.items()):
            rows.append({
                "habit_id": habit.id,
                "habit_name": habit.name,
                "category": habit.category,
                "frequency": habit.frequency,
                "date": date_key,
                "completed": entry.completed,
                "notes": entry.notes
            })
    return pd.DataFrame(rows, columns=ENTRY_COLUMNS)


def cough_logs_frame(snapshot: Snapshot) -> pd.DataFrame:
    """One row per cough log, oldest first; triggers joined with '; '"""
    rows = [
        {
            "id": log.id,
            "timestamp": log.timestamp.isoformat(),
            "severity": log.severity,
            "possible_triggers": "; ".join(log.possible_triggers),
            "notes": log.notes
        }
        for log in sorted(snapshot.cough_logs, key=lambda log: log.timestamp)
    ]
    return pd.DataFrame(rows, columns=COUGH_LOG_COLUMNS)


def export_entries_csv(snapshot: Snapshot, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    entries_frame(snapshot).to_csv(path, index=False)
    return path


def export_cough_logs_csv(snapshot: Snapshot, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    cough_logs_frame(snapshot).to_csv(path, index=False)
    return path
