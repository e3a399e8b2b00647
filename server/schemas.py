from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field
from reminders.rescheduler import RescheduleOutcome
from reminders.schemas import ScheduledReminder, WorkoutOccurrence

# =========================================================
# PYDANTIC SCHEMAS
# =========================================================

# Preference Schemas
class ConfigPatch(BaseModel):
    changes: Dict[str, Any]
    allow_conflicts: bool = Field(False, alias="allowConflicts")

    class Config:
        populate_by_name = True

class OutcomeResponse(BaseModel):
    category: str
    enabled: bool
    planned: int
    accepted: int
    rejected: int
    cancelled: int
    skipped: bool
    degraded: bool
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def from_outcome(cls, outcome: RescheduleOutcome) -> "OutcomeResponse":
        return cls(**outcome.to_dict())

class ConfigUpdateResponse(BaseModel):
    config: Dict[str, Any]
    outcome: OutcomeResponse

class ResetResponse(BaseModel):
    preferences: Dict[str, Any]
    outcomes: List[OutcomeResponse]

# Reminder Schemas
class CountResponse(BaseModel):
    count: int
    category: Optional[str] = None

class StatusResponse(BaseModel):
    available: bool
    scheduled: int
    by_category: Dict[str, int] = Field(alias="byCategory")
    degraded: List[str]

    class Config:
        populate_by_name = True

class FrequencyResponse(BaseModel):
    label: str
    reminder_count: int = Field(alias="reminderCount")
    awake_hours: float = Field(alias="awakeHours")

    class Config:
        populate_by_name = True

class WaterProgressResponse(BaseModel):
    percentage: float
    remaining_liters: float = Field(alias="remainingLiters")
    is_goal_met: bool = Field(alias="isGoalMet")

    class Config:
        populate_by_name = True

class ReminderResponse(BaseModel):
    id: str
    category: str
    fire_at: datetime = Field(alias="fireAt")
    payload_key: str = Field(alias="payloadKey")
    payload: Dict[str, Any]

    class Config:
        populate_by_name = True

    @classmethod
    def from_reminder(cls, reminder: ScheduledReminder) -> "ReminderResponse":
        return cls(
            id=reminder.reminder_id,
            category=reminder.category.value,
            fire_at=reminder.fire_at,
            payload_key=reminder.payload_key,
            payload=reminder.payload,
        )

class WorkoutPlanRequest(BaseModel):
    occurrences: Optional[List[WorkoutOccurrence]] = None
