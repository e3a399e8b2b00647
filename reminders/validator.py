"""
Conflict Validator

Runs before any preferences mutation is persisted. Hard problems (bad time
format, numbers out of range) raise; soft conflicts are returned so the caller
can ask for explicit confirmation ("Save Anyway").
"""
import logging
import math
from typing import Iterable, List, Optional, Set

from .enums import Category
from .errors import OutOfRange, ScheduleConflict
from .schemas import ConfigBase, MealsConfig, SleepConfig, WaterConfig, WorkoutConfig
from .scheduler_config import (
    SLEEP_REMINDER_RANGE,
    WATER_GOAL_RANGE,
    WORKOUT_REMINDER_RANGE,
)
from . import time_utils

logger = logging.getLogger(__name__)


def _is_touched(touched: Optional[Set[str]], *names: str) -> bool:
    if touched is None:
        return True
    return any(name in touched for name in names)


def _wire_name(model: ConfigBase, name: str) -> str:
    info = type(model).model_fields[name]
    return info.alias or name


def check_range(value, bounds, field: str, category: Category) -> None:
    minimum, maximum = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OutOfRange(field, minimum, maximum, value=value, category=category.value)
    if not math.isfinite(value) or value < minimum or value > maximum:
        raise OutOfRange(field, minimum, maximum, value=value, category=category.value)


def check_time(value: str, field: str, category: Category) -> None:
    time_utils.parse(value, category=category.value, field=field)


def validate(category, config: ConfigBase, touched: Optional[Iterable[str]] = None) -> List[ScheduleConflict]:
    """
    Validate ``config`` for ``category``.

    ``touched`` names the attributes changed by the pending edit; ``None``
    validates everything. Returns the soft conflicts found.
    """
    category = Category(category)
    touched = set(touched) if touched is not None else None

    if category == Category.water:
        return _validate_water(config, touched)
    if category == Category.workout:
        _validate_workout(config, touched)
    elif category == Category.meals:
        _validate_meals(config, touched)
    elif category == Category.sleep:
        _validate_sleep(config, touched)
    return []


def _validate_water(config: WaterConfig, touched) -> List[ScheduleConflict]:
    category = Category.water
    if _is_touched(touched, "daily_goal_liters"):
        check_range(config.daily_goal_liters, WATER_GOAL_RANGE,
                    _wire_name(config, "daily_goal_liters"), category)
    for name in ("wake_up_time", "sleep_time"):
        if _is_touched(touched, name):
            check_time(getattr(config, name), _wire_name(config, name), category)

    if not _is_touched(touched, "wake_up_time", "sleep_time"):
        return []

    wake_minutes = time_utils.to_minutes(config.wake_up_time)
    sleep_minutes = time_utils.to_minutes(config.sleep_time)
    # Midnight sleep is the "end of day" sentinel and never conflicts
    if wake_minutes >= sleep_minutes and sleep_minutes != 0:
        logger.info(f"Water schedule conflict: wake {config.wake_up_time} >= sleep {config.sleep_time}")
        return [ScheduleConflict(
            "Wake up time should be before sleep time. Are you sure about these times?",
            category=category.value,
            field=_wire_name(config, "sleep_time"),
        )]
    return []


def _validate_workout(config: WorkoutConfig, touched) -> None:
    category = Category.workout
    if _is_touched(touched, "reminder_minutes_before"):
        check_range(config.reminder_minutes_before, WORKOUT_REMINDER_RANGE,
                    _wire_name(config, "reminder_minutes_before"), category)
    if _is_touched(touched, "custom_times"):
        field = _wire_name(config, "custom_times")
        for index, value in enumerate(config.custom_times):
            check_time(value, f"{field}[{index}]", category)


def _validate_meals(config: MealsConfig, touched) -> None:
    for name, slot in config.slots().items():
        # Disabled slots keep whatever time they had
        if slot.enabled and _is_touched(touched, name):
            check_time(slot.time, f"{name}.time", Category.meals)


def _validate_sleep(config: SleepConfig, touched) -> None:
    category = Category.sleep
    if _is_touched(touched, "reminder_minutes_before"):
        check_range(config.reminder_minutes_before, SLEEP_REMINDER_RANGE,
                    _wire_name(config, "reminder_minutes_before"), category)
    if _is_touched(touched, "bedtime"):
        check_time(config.bedtime, "bedtime", category)
