#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - Core Data Models
Habits, their per-day entries and cough incident logs, with validation
"""

import copy
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Any, Mapping, Tuple
from dataclasses import dataclass, field, replace
from enum import Enum

from habitcheck.utils.datetime_utils import now_local, parse_timestamp
from habitcheck.utils.validators import (
    is_valid_date_key,
    is_valid_severity,
    SEVERITY_MIN,
    SEVERITY_MAX,
)


# ===== ENUMS =====

class HabitCategory(Enum):
    """Habit categories"""
    HEALTH = "health"
    PRODUCTIVITY = "productivity"
    WELLNESS = "wellness"
    LIFESTYLE = "lifestyle"
    OTHER = "other"


class HabitFrequency(Enum):
    """How often a habit is meant to be done"""
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    WEEKLY = "weekly"

# ===== EXCEPTIONS =====

class HabitCheckError(Exception):
    """Base class for domain errors"""
    pass


class ValidationError(HabitCheckError):
    """Malformed or out-of-range input"""
    pass


class NotFoundError(HabitCheckError):
    """Operation referenced an unknown identifier"""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} '{entity_id}' not found")

# ===== VALIDATION HELPERS =====

def validate_text(text: Any, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Validate and strip a text field"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    text = text.strip()
    if len(text) < min_length:
        if min_length == 1:
            raise ValidationError(f"{field_name} is required")
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")

    return text


def validate_enum_value(value: Any, enum_class: type, field_name: str = "value") -> str:
    """Validate an enum value given as its string form or as a member"""
    if isinstance(value, enum_class):
        return value.value
    try:
        return enum_class(value).value
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} must be one of: {valid_values}")


def validate_date_key(date_key: Any) -> str:
    if not is_valid_date_key(date_key):
        raise ValidationError(f"Invalid date key {date_key!r}, expected YYYY-MM-DD")
    return date_key


def validate_timestamp(value: Any) -> datetime:
    try:
        return parse_timestamp(value)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Invalid timestamp {value!r}: {e}")


def validate_severity(value: Any) -> int:
    if not is_valid_severity(value):
        raise ValidationError(f"severity must be an integer between {SEVERITY_MIN} and {SEVERITY_MAX}, got {value!r}")
    return value


def validate_triggers(triggers: Any) -> List[str]:
    """Strip labels and drop blanks; duplicates are kept as given"""
    if triggers is None:
        return []
    if isinstance(triggers, str) or not isinstance(triggers, (list, tuple, set, frozenset)):
        raise ValidationError("possible_triggers must be a list of strings")

    result = []
    for trigger in triggers:
        if not isinstance(trigger, str):
            raise ValidationError("possible_triggers must be a list of strings")
        trigger = trigger.strip()
        if trigger:
            result.append(trigger)
    return result

# ===== CORE MODELS =====

@dataclass
class HabitEntry:
    """Completion record of one habit on one calendar day"""
    completed: bool
    notes: str = ""

    def __post_init__(self):
        if not isinstance(self.completed, bool):
            raise ValidationError("completed must be a boolean")
        if self.notes is None:
            self.notes = ""
        self.notes = validate_text(self.notes, min_length=0, max_length=500, field_name="notes")

    def to_dict(self) -> Dict[str, Any]:
        return {'completed': self.completed, 'notes': self.notes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HabitEntry":
        return cls(completed=data.get('completed', False), notes=data.get('notes') or "")


@dataclass
class Habit:
    """A recurring behavior tracked per calendar day"""
    id: str
    name: str
    description: str = ""
    category: str = HabitCategory.HEALTH.value
    frequency: str = HabitFrequency.DAILY.value
    date_created: str = field(default_factory=lambda: now_local().isoformat())
    entries: Dict[str, HabitEntry] = field(default_factory=dict)

    def __post_init__(self):
        """Validate after construction"""
        if not self.id or not isinstance(self.id, str):
            raise ValidationError("id must be a non-empty string")

        if self.name is None:
            raise ValidationError("name is required")
        self.name = validate_text(self.name, min_length=1, max_length=200, field_name="name")

        self.description = validate_text(self.description or "", min_length=0, max_length=1000,
                                         field_name="description")
        self.category = validate_enum_value(self.category, HabitCategory, "category")
        self.frequency = validate_enum_value(self.frequency, HabitFrequency, "frequency")
        self.date_created = validate_timestamp(self.date_created).isoformat()

        entries = {}
        for key, entry in (self.entries or {}).items():
            validate_date_key(key)
            if isinstance(entry, Mapping):
                entry = HabitEntry.from_dict(entry)
            elif not isinstance(entry, HabitEntry):
                raise ValidationError(f"Entry for {key} must be a HabitEntry")
            entries[key] = entry
        self.entries = entries

    # ===== ENTRIES =====

    def get_entry(self, date_key: str) -> Optional[HabitEntry]:
        return self.entries.get(date_key)

    def set_entry(self, date_key: str, completed: bool, notes: str = "") -> HabitEntry:
        """Upsert the entry for a day, replacing any previous entry wholesale"""
        validate_date_key(date_key)
        entry = HabitEntry(completed=completed, notes=notes)
        self.entries[date_key] = entry
        return entry

    def is_completed_on(self, date_key: str) -> bool:
        entry = self.entries.get(date_key)
        return bool(entry and entry.completed)

    @property
    def completed_days(self) -> List[str]:
        return sorted(key for key, entry in self.entries.items() if entry.completed)

    # ===== SERIALIZATION =====

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'frequency': self.frequency,
            'date_created': self.date_created,
            'entries': {key: entry.to_dict() for key, entry in sorted(self.entries.items())}
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Habit":
        return cls(
            id=data.get('id'),
            name=data.get('name'),
            description=data.get('description') or "",
            category=data.get('category') or HabitCategory.HEALTH.value,
            frequency=data.get('frequency') or HabitFrequency.DAILY.value,
            date_created=data.get('date_created') or now_local().isoformat(),
            entries=data.get('entries') or {}
        )

    @classmethod
    def create(cls, draft: Mapping[str, Any]) -> "Habit":
        """Build a new habit from a draft; id is fresh and entries start empty"""
        return cls(
            id=str(uuid.uuid4()),
            name=draft.get('name'),
            description=draft.get('description') or "",
            category=draft.get('category') or HabitCategory.HEALTH.value,
            frequency=draft.get('frequency') or HabitFrequency.DAILY.value,
            date_created=draft.get('date_created') or now_local().isoformat()
        )


@dataclass
class CoughLog:
    """A timestamped symptom incident"""
    id: str
    timestamp: datetime
    severity: int
    possible_triggers: List[str] = field(default_factory=list)
    notes: str = ""

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValidationError("id must be a non-empty string")
        self.timestamp = validate_timestamp(self.timestamp)
        self.severity = validate_severity(self.severity)
        self.possible_triggers = validate_triggers(self.possible_triggers)
        self.notes = validate_text(self.notes or "", min_length=0, max_length=1000, field_name="notes")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'severity': self.severity,
            'possible_triggers': list(self.possible_triggers),
            'notes': self.notes
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CoughLog":
        return cls(
            id=data.get('id'),
            timestamp=data.get('timestamp'),
            severity=data.get('severity'),
            possible_triggers=data.get('possible_triggers') or [],
            notes=data.get('notes') or ""
        )

    @classmethod
    def create(cls, draft: Mapping[str, Any]) -> "CoughLog":
        timestamp = draft.get('timestamp')
        return cls(
            id=str(uuid.uuid4()),
            timestamp=timestamp if timestamp is not None else now_local(),
            severity=draft.get('severity'),
            possible_triggers=draft.get('possible_triggers') or [],
            notes=draft.get('notes') or ""
        )

# ===== PATCHES =====

@dataclass
class HabitPatch:
    """Fields of a habit that an update may overwrite; None leaves a field untouched"""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    frequency: Optional[str] = None
    entries: Optional[Dict[str, Any]] = None

    FIELDS = ('name', 'description', 'category', 'frequency', 'entries')

    def apply(self, habit: Habit) -> Habit:
        """Return an updated, re-validated copy; the original is left unchanged"""
        changes = {name: getattr(self, name) for name in self.FIELDS if getattr(self, name) is not None}
        if 'entries' in changes:
            changes['entries'] = copy.deepcopy(changes['entries'])
        else:
            changes['entries'] = copy.deepcopy(habit.entries)
        return replace(habit, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HabitPatch":
        unknown = set(data) - set(cls.FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        return cls(**{name: data[name] for name in cls.FIELDS if name in data})


@dataclass
class CoughLogPatch:
    """Fields of a cough log that an update may overwrite"""
    timestamp: Optional[Any] = None
    severity: Optional[int] = None
    possible_triggers: Optional[List[str]] = None
    notes: Optional[str] = None

    FIELDS = ('timestamp', 'severity', 'possible_triggers', 'notes')

    def apply(self, log: CoughLog) -> CoughLog:
        changes = {name: getattr(self, name) for name in self.FIELDS if getattr(self, name) is not None}
        if 'possible_triggers' not in changes:
            changes['possible_triggers'] = list(log.possible_triggers)
        return replace(log, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CoughLogPatch":
        unknown = set(data) - set(cls.FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        return cls(**{name: data[name] for name in cls.FIELDS if name in data})

# ===== SNAPSHOT =====

@dataclass(frozen=True)
class Snapshot:
    """Read-only view of both collections at one instant"""
    habits: Tuple[Habit, ...] = ()
    cough_logs: Tuple[CoughLog, ...] = ()

    @classmethod
    def capture(cls, habits, cough_logs) -> "Snapshot":
        return cls(
            habits=tuple(copy.deepcopy(list(habits))),
            cough_logs=tuple(copy.deepcopy(list(cough_logs)))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habits': [habit.to_dict() for habit in self.habits],
            'cough_logs': [log.to_dict() for log in self.cough_logs]
        }


__all__ = [
    'HabitCategory',
    'HabitFrequency',
    'HabitCheckError',
    'ValidationError',
    'NotFoundError',
    'validate_text',
    'validate_enum_value',
    'validate_date_key',
    'validate_timestamp',
    'validate_severity',
    'validate_triggers',
    'HabitEntry',
    'Habit',
    'CoughLog',
    'HabitPatch',
    'CoughLogPatch',
    'Snapshot'
]
