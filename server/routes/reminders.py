from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from reminders.computer import awake_minutes, water_reminder_count
from reminders.enums import Category
from reminders.errors import InvalidFormat, ReminderError
from reminders.presets import all_presets
from reminders.service import ReminderService
from server.dependencies import get_service, raise_http_error
from server.schemas import (
    CountResponse,
    FrequencyResponse,
    OutcomeResponse,
    ReminderResponse,
    StatusResponse,
    WaterProgressResponse,
    WorkoutPlanRequest,
)

router = APIRouter()

# =========================================================
# SCHEDULED STATE
# =========================================================
@router.get("/count", response_model=CountResponse)
def get_scheduled_count(
    category: Optional[str] = None,
    service: ReminderService = Depends(get_service)
):
    try:
        count = service.get_scheduled_count(category)
    except ReminderError as e:
        raise_http_error(e)
    return {"count": count, "category": category}

@router.get("/status", response_model=StatusResponse)
def get_status(service: ReminderService = Depends(get_service)):
    return service.status()

@router.get("/preview/{category}", response_model=List[ReminderResponse])
def preview_category(category: str, service: ReminderService = Depends(get_service)):
    """Reminders the category would hold if it were rescheduled now."""
    try:
        reminders = service.preview(category)
    except ReminderError as e:
        raise_http_error(e)
    return [ReminderResponse.from_reminder(r) for r in reminders]

@router.post("/resync", response_model=List[OutcomeResponse])
def resync_all(service: ReminderService = Depends(get_service)):
    outcomes = service.schedule_all()
    return [OutcomeResponse.from_outcome(o) for o in outcomes.values()]

@router.delete("/", response_model=List[OutcomeResponse])
def clear_all(service: ReminderService = Depends(get_service)):
    outcomes = service.clear_all()
    return [OutcomeResponse.from_outcome(o) for o in outcomes.values()]

@router.put("/workout-plan", response_model=OutcomeResponse)
def set_workout_plan(payload: WorkoutPlanRequest, service: ReminderService = Depends(get_service)):
    outcome = service.set_workout_plan(payload.occurrences)
    return OutcomeResponse.from_outcome(outcome)

# =========================================================
# WATER HELPERS
# =========================================================
@router.get("/frequency", response_model=FrequencyResponse)
def get_frequency(service: ReminderService = Depends(get_service)):
    water = service.get_config(Category.water)
    try:
        hours = awake_minutes(water) / 60
    except InvalidFormat:
        hours = 0
    return {
        "label": service.frequency_label(),
        "reminder_count": water_reminder_count(water.daily_goal_liters),
        "awake_hours": round(hours, 2),
    }

@router.get("/water-progress", response_model=WaterProgressResponse)
def get_water_progress(
    current_liters: float = Query(..., alias="currentLiters", ge=0),
    service: ReminderService = Depends(get_service)
):
    return service.water_progress(current_liters)

@router.get("/presets")
def get_presets() -> Dict:
    return all_presets()
