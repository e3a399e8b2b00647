from typing import Any, Dict
from fastapi import APIRouter, Depends
from reminders.enums import Category
from reminders.errors import ReminderError
from reminders.service import ReminderService
from server.dependencies import get_service, raise_http_error
from server.schemas import ConfigPatch, ConfigUpdateResponse, OutcomeResponse, ResetResponse

router = APIRouter()

def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)

# =========================================================
# PREFERENCE ENDPOINTS
# =========================================================
@router.get("/")
def get_preferences(service: ReminderService = Depends(get_service)):
    return _dump(service.get_preferences())

@router.post("/reset", response_model=ResetResponse)
def reset_preferences(service: ReminderService = Depends(get_service)):
    try:
        outcomes = service.reset_to_defaults()
    except ReminderError as e:
        raise_http_error(e)
    return {
        "preferences": _dump(service.get_preferences()),
        "outcomes": [OutcomeResponse.from_outcome(o) for o in outcomes.values()],
    }

@router.get("/{category}")
def get_category_config(category: str, service: ReminderService = Depends(get_service)):
    try:
        return _dump(service.get_config(category))
    except ReminderError as e:
        raise_http_error(e)

@router.patch("/{category}", response_model=ConfigUpdateResponse)
def update_category_config(
    category: str,
    patch: ConfigPatch,
    service: ReminderService = Depends(get_service)
):
    """
    Validate and save a partial config, then reschedule that category.

    Soft conflicts come back as 409 until the client resends with
    ``allowConflicts: true``.
    """
    try:
        outcome = service.update_config(category, patch.changes, allow_conflicts=patch.allow_conflicts)
    except ReminderError as e:
        raise_http_error(e)
    return {
        "config": _dump(service.get_config(category)),
        "outcome": OutcomeResponse.from_outcome(outcome),
    }

@router.post("/{category}/toggle", response_model=ConfigUpdateResponse)
def toggle_category(category: str, service: ReminderService = Depends(get_service)):
    try:
        outcome = service.toggle_category(category)
    except ReminderError as e:
        raise_http_error(e)
    return {
        "config": _dump(service.get_config(Category(category))),
        "outcome": OutcomeResponse.from_outcome(outcome),
    }
