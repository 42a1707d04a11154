from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime

from habitcheck.core.models import HabitCategory, HabitFrequency


def _strip_triggers(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    return [v.strip() for v in values if v and v.strip()]

# Entries

class HabitEntrySchema(BaseModel):
    completed: bool
    notes: str = ""

# Habit requests

class HabitCreateRequest(BaseModel):
    name: str
    description: str = ""
    category: HabitCategory = HabitCategory.HEALTH
    frequency: HabitFrequency = HabitFrequency.DAILY
    date_created: Optional[datetime] = None

    def to_draft(self) -> Dict[str, Any]:
        draft = self.model_dump(exclude_none=True)
        draft['category'] = self.category.value
        draft['frequency'] = self.frequency.value
        return draft


class HabitUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[HabitCategory] = None
    frequency: Optional[HabitFrequency] = None
    entries: Optional[Dict[str, HabitEntrySchema]] = None

    def to_patch(self) -> Dict[str, Any]:
        """Only the fields the client actually sent"""
        patch = self.model_dump(exclude_unset=True, exclude_none=True)
        if self.category is not None:
            patch['category'] = self.category.value
        if self.frequency is not None:
            patch['frequency'] = self.frequency.value
        return patch


class HabitEntryRequest(BaseModel):
    completed: bool
    notes: str = ""

# Cough log requests

class CoughLogCreateRequest(BaseModel):
    timestamp: Optional[datetime] = None
    severity: int = Field(..., ge=1, le=10)
    possible_triggers: List[str] = []
    notes: str = ""

    @field_validator('possible_triggers')
    @classmethod
    def strip_triggers(cls, v):
        return _strip_triggers(v)

    def to_draft(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CoughLogUpdateRequest(BaseModel):
    timestamp: Optional[datetime] = None
    severity: Optional[int] = Field(None, ge=1, le=10)
    possible_triggers: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator('possible_triggers')
    @classmethod
    def strip_triggers(cls, v):
        return _strip_triggers(v)

    def to_patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)

# Responses

class TriggerCountSchema(BaseModel):
    trigger: str
    count: int


class ActivityItemSchema(BaseModel):
    id: str
    timestamp: datetime
    severity: int
    label: str


class DashboardStatsResponse(BaseModel):
    total_habits: int
    habit_completion_rate: int = Field(..., ge=0, le=100)
    total_cough_incidents: int
    recent_cough_incidents: int
    top_triggers: List[TriggerCountSchema] = []
    recent_activity: List[ActivityItemSchema] = []


class HabitStreak(BaseModel):
    habit_id: str
    name: str
    streak: int


class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None
    warning: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    habits: int = 0
    cough_logs: int = 0
