"""Tests for JSON and CSV export."""

import json

import pandas as pd

from habitcheck.core.models import CoughLog, Habit, Snapshot
from habitcheck.services.data_export import (
    COUGH_LOG_COLUMNS,
    ENTRY_COLUMNS,
    export_cough_logs_csv,
    export_entries_csv,
    export_to_json,
)


def sample_snapshot():
    habit = Habit(id="h1", name="Walk", entries={
        "2024-01-10": {"completed": True, "notes": "park"},
        "2024-01-09": {"completed": False},
    })
    logs = [
        CoughLog(id="c2", timestamp="2024-01-09T10:00:00Z", severity=6, possible_triggers=["dust", "smoke"]),
        CoughLog(id="c1", timestamp="2024-01-08T10:00:00Z", severity=3),
    ]
    return Snapshot.capture([habit], logs)


def test_export_json(tmp_path):
    path = export_to_json(sample_snapshot(), tmp_path / "out" / "export.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["export_info"]["habits"] == 1
    assert data["export_info"]["cough_logs"] == 2
    assert data["habits"][0]["entries"]["2024-01-10"]["notes"] == "park"


def test_export_entries_csv(tmp_path):
    path = export_entries_csv(sample_snapshot(), tmp_path / "entries.csv")

    frame = pd.read_csv(path, keep_default_na=False)
    assert list(frame.columns) == ENTRY_COLUMNS
    assert list(frame["date"]) == ["2024-01-09", "2024-01-10"]
    assert list(frame["completed"]) == [False, True]


def test_export_cough_logs_csv(tmp_path):
    path = export_cough_logs_csv(sample_snapshot(), tmp_path / "coughs.csv")

    frame = pd.read_csv(path, keep_default_na=False)
    assert list(frame.columns) == COUGH_LOG_COLUMNS
    assert list(frame["id"]) == ["c1", "c2"]
    assert frame.loc[1, "possible_triggers"] == "dust; smoke"


def test_empty_csv_has_header(tmp_path):
    path = export_cough_logs_csv(Snapshot(), tmp_path / "coughs.csv")

    assert path.read_text(encoding="utf-8").strip() == ",".join(COUGH_LOG_COLUMNS)
