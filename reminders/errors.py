"""
Reminder Engine Errors

Every failure the engine reports carries the category, the field (when one
applies) and a stable ``kind`` string so API clients can show an actionable
message.
"""
from typing import List, Optional


class ReminderError(Exception):
    kind = "reminder_error"

    def __init__(self, message: str, category: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.category = category
        self.field = field

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "category": self.category,
            "field": self.field,
            "message": self.message,
        }


# =========================================================
# HARD VALIDATION ERRORS (block the save)
# =========================================================
class ConfigValidationError(ReminderError):
    kind = "validation_error"


class InvalidFormat(ConfigValidationError):
    kind = "invalid_format"

    def __init__(self, value, category: Optional[str] = None, field: Optional[str] = None,
                 message: Optional[str] = None):
        self.value = value
        super().__init__(
            message or f"Invalid time {value!r}: expected HH:MM in 24-hour format (e.g. 08:30)",
            category=category,
            field=field,
        )


class OutOfRange(ConfigValidationError):
    kind = "out_of_range"

    def __init__(self, field: str, minimum, maximum, value=None, category: Optional[str] = None):
        self.minimum = minimum
        self.maximum = maximum
        self.value = value
        super().__init__(
            f"{field} must be between {minimum} and {maximum}, got {value!r}",
            category=category,
            field=field,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"min": self.minimum, "max": self.maximum})
        return data


class UnknownCategory(ConfigValidationError):
    kind = "unknown_category"

    def __init__(self, category):
        super().__init__(f"Unknown reminder category: {category!r}", category=str(category))


# =========================================================
# SOFT CONFLICTS (need explicit confirmation)
# =========================================================
class ScheduleConflict(ReminderError):
    kind = "schedule_conflict"

    def __init__(self, message: str, category: Optional[str] = None, field: Optional[str] = None,
                 conflicts: Optional[List["ScheduleConflict"]] = None):
        super().__init__(message, category=category, field=field)
        self.conflicts = conflicts or [self]

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.conflicts and self.conflicts != [self]:
            data["conflicts"] = [c.to_dict() for c in self.conflicts]
        return data


# =========================================================
# SINK AND STORAGE FAILURES
# =========================================================
class SinkRejected(ReminderError):
    """Raised by a sink that refuses a single entry (e.g. platform cap reached)."""
    kind = "sink_rejected"


class SinkUnavailable(ReminderError):
    kind = "sink_unavailable"

    def __init__(self, message: str = "Local notifications are not available on this runtime",
                 category: Optional[str] = None):
        super().__init__(message, category=category)


class PartialScheduleFailure(ReminderError):
    kind = "partial_schedule_failure"

    def __init__(self, category: str, accepted: int, rejected: int, reason: Optional[str] = None):
        self.accepted = accepted
        self.rejected = rejected
        message = f"Only {accepted} of {accepted + rejected} {category} reminders were scheduled"
        if reason:
            message += f": {reason}"
        super().__init__(message, category=category)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"accepted": self.accepted, "rejected": self.rejected})
        return data


class PersistenceFailure(ReminderError):
    kind = "persistence_failure"
