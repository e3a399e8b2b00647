import enum
# =========================================================
# ENUMS
# =========================================================
class Category(str, enum.Enum):
    water = "water"
    workout = "workout"
    meals = "meals"
    sleep = "sleep"
    progress = "progress"

    @property
    def prefix(self) -> str:
        """Sink id prefix shared by every reminder of this category."""
        return f"{self.value}_"

class ProgressFrequency(str, enum.Enum):
    weekly = "weekly"
    daily = "daily"

class RescheduleState(str, enum.Enum):
    idle = "idle"
    cancelling = "cancelling"
    submitting = "submitting"
