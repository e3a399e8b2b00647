from typing import Optional
from fastapi import HTTPException
from reminders.errors import (
    ConfigValidationError,
    PersistenceFailure,
    ReminderError,
    ScheduleConflict,
    UnknownCategory,
)
from reminders.service import ReminderService

_service: Optional[ReminderService] = None

def set_service(service: Optional[ReminderService]) -> None:
    global _service
    _service = service

def get_service() -> ReminderService:
    if _service is None:
        raise HTTPException(status_code=503, detail="Reminder service is not initialised")
    return _service

def raise_http_error(error: ReminderError):
    """Translate an engine error into an HTTPException with a structured detail."""
    if isinstance(error, UnknownCategory):
        status_code = 404
    elif isinstance(error, ConfigValidationError):
        status_code = 422
    elif isinstance(error, ScheduleConflict):
        status_code = 409
    elif isinstance(error, PersistenceFailure):
        status_code = 500
    else:
        status_code = 502
    raise HTTPException(status_code=status_code, detail=error.to_dict())
