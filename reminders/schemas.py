from typing import Any, Dict, List, Optional, Type
from datetime import datetime
from pydantic import BaseModel, Field
from .enums import Category, ProgressFrequency

# =========================================================
# PYDANTIC SCHEMAS
# =========================================================
# Times are kept as "HH:MM" strings; ConflictValidator checks their format so
# that malformed values surface as InvalidFormat rather than a pydantic error.

class ConfigBase(BaseModel):
    enabled: bool = True

    class Config:
        populate_by_name = True
        extra = "forbid"
        validate_assignment = True

    @classmethod
    def field_name(cls, key: str) -> Optional[str]:
        """Map a patch key (snake_case or camelCase alias) to the attribute name."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None


class WaterConfig(ConfigBase):
    daily_goal_liters: float = Field(4.0, alias="dailyGoalLiters")
    wake_up_time: str = Field("07:00", alias="wakeUpTime")
    sleep_time: str = Field("23:00", alias="sleepTime")


class WorkoutConfig(ConfigBase):
    reminder_minutes_before: int = Field(30, alias="reminderMinutesBefore")
    custom_times: List[str] = Field(default_factory=list, alias="customTimes")


class MealSlot(BaseModel):
    enabled: bool = True
    time: str

    class Config:
        extra = "forbid"


class MealsConfig(ConfigBase):
    breakfast: MealSlot = Field(default_factory=lambda: MealSlot(time="08:00"))
    lunch: MealSlot = Field(default_factory=lambda: MealSlot(time="13:00"))
    dinner: MealSlot = Field(default_factory=lambda: MealSlot(time="19:00"))

    def slots(self) -> Dict[str, MealSlot]:
        return {"breakfast": self.breakfast, "lunch": self.lunch, "dinner": self.dinner}


class SleepConfig(ConfigBase):
    enabled: bool = False
    bedtime: str = "22:30"
    reminder_minutes_before: int = Field(30, alias="reminderMinutesBefore")


class ProgressConfig(ConfigBase):
    frequency: ProgressFrequency = ProgressFrequency.weekly


CONFIG_MODELS: Dict[Category, Type[ConfigBase]] = {
    Category.water: WaterConfig,
    Category.workout: WorkoutConfig,
    Category.meals: MealsConfig,
    Category.sleep: SleepConfig,
    Category.progress: ProgressConfig,
}


class NotificationPreferences(BaseModel):
    water: WaterConfig = Field(default_factory=WaterConfig)
    workout: WorkoutConfig = Field(default_factory=WorkoutConfig)
    meals: MealsConfig = Field(default_factory=MealsConfig)
    sleep: SleepConfig = Field(default_factory=SleepConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)

    class Config:
        populate_by_name = True

    def get(self, category: Category) -> ConfigBase:
        return getattr(self, Category(category).value)


def default_preferences() -> NotificationPreferences:
    """Built-in defaults used when nothing is stored yet."""
    return NotificationPreferences()


# =========================================================
# DERIVED SCHEDULE
# =========================================================
class ScheduledReminder(BaseModel):
    category: Category
    sub_id: str
    fire_at: datetime
    payload_key: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def reminder_id(self) -> str:
        return f"{self.category.prefix}{self.sub_id}"


class WorkoutOccurrence(BaseModel):
    workout_id: str = Field(alias="workoutId")
    start_at: datetime = Field(alias="startAt")

    class Config:
        populate_by_name = True
