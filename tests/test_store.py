"""Tests for the entry store mutation surface."""

import json

import pytest

from habitcheck.core.database import DatabaseError, DatabaseManager
from habitcheck.core.models import HabitEntry, HabitPatch, NotFoundError, ValidationError
from habitcheck.core.store import EntryStore


class TestHabits:

    def test_add_habit_persists(self, store, data_file):
        habit = store.add_habit({"name": "Meditate"})

        saved = json.loads(data_file.read_text(encoding="utf-8"))
        assert [h["id"] for h in saved["habits"]] == [habit.id]
        assert store.get_habit(habit.id) is habit

    def test_add_habit_without_name_fails(self, store):
        with pytest.raises(ValidationError):
            store.add_habit({"description": "no name"})
        assert store.get_habits() == []

    def test_update_preserves_entries(self, store, sample_habit):
        store.log_habit_entry(sample_habit.id, "2024-01-09", True, "done")

        updated = store.update_habit(sample_habit.id, {"name": "Drink more water"})

        assert updated.name == "Drink more water"
        assert updated.entries["2024-01-09"] == HabitEntry(completed=True, notes="done")

    def test_update_accepts_typed_patch(self, store, sample_habit):
        updated = store.update_habit(sample_habit.id, HabitPatch(category="wellness"))
        assert updated.category == "wellness"
        assert updated.id == sample_habit.id

    def test_update_unknown_habit(self, store):
        with pytest.raises(NotFoundError):
            store.update_habit("missing", {"name": "x"})

    def test_delete_twice_fails(self, store, sample_habit):
        store.delete_habit(sample_habit.id)

        with pytest.raises(NotFoundError):
            store.delete_habit(sample_habit.id)
        assert store.get_habits() == []


class TestEntries:

    def test_log_entry_is_idempotent(self, store, sample_habit):
        store.log_habit_entry(sample_habit.id, "2024-01-10", True, "note")
        once = dict(store.get_habit(sample_habit.id).entries)
        store.log_habit_entry(sample_habit.id, "2024-01-10", True, "note")

        assert store.get_habit(sample_habit.id).entries == once

    def test_upsert_leaves_other_dates(self, store, sample_habit):
        store.log_habit_entry(sample_habit.id, "2024-01-09", True, "yesterday")
        store.log_habit_entry(sample_habit.id, "2024-01-10", True, "")
        store.log_habit_entry(sample_habit.id, "2024-01-10", False, "changed")

        entries = store.get_habit(sample_habit.id).entries
        assert entries["2024-01-09"] == HabitEntry(completed=True, notes="yesterday")
        assert entries["2024-01-10"] == HabitEntry(completed=False, notes="changed")

    @pytest.mark.parametrize("key", ["2024-1-10", "10/01/2024", "2024-02-30", "", "2024-01-10T00:00"])
    def test_malformed_date_key(self, store, sample_habit, key):
        with pytest.raises(ValidationError):
            store.log_habit_entry(sample_habit.id, key, True)
        assert store.get_habit(sample_habit.id).entries == {}

    def test_unknown_habit(self, store):
        with pytest.raises(NotFoundError):
            store.log_habit_entry("missing", "2024-01-10", True)

    def test_toggle_keeps_notes(self, store, sample_habit):
        store.save_habit_notes(sample_habit.id, "2024-01-10", "felt good")

        store.toggle_habit_completion(sample_habit.id, "2024-01-10")
        assert store.get_habit(sample_habit.id).entries["2024-01-10"] == HabitEntry(True, "felt good")

        store.toggle_habit_completion(sample_habit.id, "2024-01-10")
        assert store.get_habit(sample_habit.id).entries["2024-01-10"] == HabitEntry(False, "felt good")

    def test_save_notes_keeps_completion(self, store, sample_habit):
        store.log_habit_entry(sample_habit.id, "2024-01-10", True)
        store.save_habit_notes(sample_habit.id, "2024-01-10", "evening")

        assert store.get_habit(sample_habit.id).entries["2024-01-10"] == HabitEntry(True, "evening")


class TestCoughLogs:

    def test_add_update_delete(self, store):
        log = store.add_cough_log({"severity": 5, "possible_triggers": ["dust"], "timestamp": "2024-01-09T08:00:00Z"})

        updated = store.update_cough_log(log.id, {"notes": "after cleaning"})
        assert updated.notes == "after cleaning"
        assert updated.severity == 5

        store.delete_cough_log(log.id)
        with pytest.raises(NotFoundError):
            store.get_cough_log(log.id)

    def test_invalid_severity_is_rejected(self, store):
        with pytest.raises(ValidationError):
            store.add_cough_log({"severity": 12})
        assert store.get_cough_logs() == []

    def test_update_rejects_invalid_severity(self, store):
        log = store.add_cough_log({"severity": 5})
        with pytest.raises(ValidationError):
            store.update_cough_log(log.id, {"severity": 0})
        assert store.get_cough_log(log.id).severity == 5

    def test_delete_twice_fails(self, store):
        log = store.add_cough_log({"severity": 5})
        store.delete_cough_log(log.id)

        with pytest.raises(NotFoundError):
            store.delete_cough_log(log.id)
        assert store.get_cough_logs() == []

    def test_delete_unknown_log(self, store):
        with pytest.raises(NotFoundError):
            store.delete_cough_log("missing")


class TestPersistenceFailures:

    def test_failed_save_keeps_mutation_and_warns(self, store, monkeypatch):
        warnings = []
        store.add_warning_callback(warnings.append)

        def failing_save(habits, cough_logs):
            raise DatabaseError("disk full")

        monkeypatch.setattr(store.database, "save", failing_save)

        habit = store.add_habit({"name": "Sleep early"})

        assert store.get_habit(habit.id).name == "Sleep early"
        assert "disk full" in store.last_persistence_error
        assert len(warnings) == 1

    def test_successful_save_clears_warning(self, store, monkeypatch):
        def read_only(habits, cough_logs):
            raise OSError("read-only file system")

        original_save = store.database.save
        monkeypatch.setattr(store.database, "save", read_only)
        store.add_habit({"name": "Read"})
        assert store.last_persistence_error is not None

        monkeypatch.setattr(store.database, "save", original_save)
        store.add_habit({"name": "Write"})
        assert store.last_persistence_error is None


class TestLifecycle:

    def test_reload_from_disk(self, database, data_file, tmp_path):
        with EntryStore(database) as first:
            habit = first.add_habit({"name": "Floss"})
            first.log_habit_entry(habit.id, "2024-01-10", True)
            first.add_cough_log({"severity": 2})

        reopened = EntryStore(DatabaseManager(data_file=data_file, backup_dir=tmp_path / "backups",
                                              auto_backup=False)).initialize()
        assert reopened.get_habit(habit.id).is_completed_on("2024-01-10")
        assert len(reopened.get_cough_logs()) == 1

    def test_snapshot_is_isolated(self, store, sample_habit):
        snapshot = store.snapshot()
        store.log_habit_entry(sample_habit.id, "2024-01-10", True)

        assert snapshot.habits[0].entries == {}
