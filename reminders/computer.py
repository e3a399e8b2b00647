"""
Schedule Computer

Pure functions turning one category's configuration into the concrete
reminder instants for the planning horizon. Nothing here talks to the sink or
to storage; the same inputs always give the same reminders.
"""
import logging
import math
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

import pytz

from .enums import Category, ProgressFrequency
from .errors import InvalidFormat
from .schemas import (
    ConfigBase,
    MealsConfig,
    ProgressConfig,
    ScheduledReminder,
    SleepConfig,
    WaterConfig,
    WorkoutConfig,
    WorkoutOccurrence,
)
from .scheduler_config import (
    DEFAULT_HORIZON_DAYS,
    PROGRESS_MIN_WINDOW_DAYS,
    PROGRESS_TIME,
    PROGRESS_WEEKDAY,
    WATER_EVENING_TAPER,
    WATER_REMINDERS_PER_LITER,
)
from . import time_utils

logger = logging.getLogger(__name__)


# =========================================================
# WATER MATH
# =========================================================
def water_reminder_count(daily_goal_liters: float) -> int:
    """About four reminders per liter, rounded up."""
    # round() strips float noise such as 4.000000000000001
    return math.ceil(round(daily_goal_liters * WATER_REMINDERS_PER_LITER, 9))


def water_offsets(awake_minutes: int, count: int, taper: float = WATER_EVENING_TAPER) -> List[int]:
    """
    Minute offsets from wake-up for ``count`` reminders.

    Reminder density decays linearly across the awake window, so the evening
    gets ``(1 - taper)`` times the morning density. Reminder ``i`` sits at the
    ``i / count`` quantile of that density; the first fires at wake-up.
    ``taper=0`` gives equal spacing. Offsets are whole minutes and
    de-duplicated, so at most ``awake_minutes`` reminders come back.
    """
    if not 0 <= taper < 1:
        raise ValueError(f"taper must be in [0, 1), got {taper}")
    offsets: List[int] = []
    for i in range(count):
        q = i / count
        if taper == 0:
            u = q
        else:
            u = (1 - math.sqrt(1 - 2 * taper * q * (1 - taper / 2))) / taper
        offset = int(u * awake_minutes)
        if not offsets or offset > offsets[-1]:
            offsets.append(offset)
    return offsets


def awake_minutes(config: WaterConfig) -> int:
    return time_utils.duration_wrapping(config.wake_up_time, config.sleep_time)


def calculate_reminder_frequency(config: WaterConfig) -> str:
    """Human label for the average gap between water reminders."""
    try:
        awake_hours = awake_minutes(config) / 60
    except InvalidFormat:
        return "N/A"
    count = water_reminder_count(config.daily_goal_liters)
    if count <= 0 or awake_hours <= 0:
        return "N/A"

    avg_interval = awake_hours / count
    if avg_interval < 1:
        return "Every 30-60 min"
    if avg_interval < 2:
        return "Every 1-2 hours"
    return f"Every {math.floor(avg_interval + 0.5)} hours"


def water_progress(config: WaterConfig, current_liters: float) -> dict:
    goal = config.daily_goal_liters
    return {
        "percentage": min(current_liters / goal * 100, 100),
        "remaining_liters": max(goal - current_liters, 0),
        "is_goal_met": current_liters >= goal,
    }


# =========================================================
# HORIZON HELPERS
# =========================================================
class _Window:
    """Half-open planning window ``(now, end]`` in a local zone."""

    def __init__(self, now: datetime, horizon_days: float, tz):
        self.tz = pytz.timezone(tz) if isinstance(tz, str) else tz
        if now.tzinfo is None:
            now = self.tz.localize(now)
        self.now = now
        self.end = now + timedelta(days=horizon_days)

    def days(self) -> Iterable[date]:
        # Start a day early so wind-down times before midnight are not missed
        day = self.now.astimezone(self.tz).date() - timedelta(days=1)
        last = self.end.astimezone(self.tz).date()
        while day <= last:
            yield day
            day += timedelta(days=1)

    def at(self, day: date, value) -> datetime:
        return time_utils.at_local(day, value, self.tz)

    def shift(self, moment: datetime, minutes: int) -> datetime:
        return self.tz.normalize(moment + timedelta(minutes=minutes))

    def contains(self, moment: datetime) -> bool:
        return self.now < moment <= self.end


# =========================================================
# PER-CATEGORY COMPUTATION
# =========================================================
def compute_water(config: WaterConfig, window: _Window, **_) -> List[ScheduledReminder]:
    count = water_reminder_count(config.daily_goal_liters)
    offsets = water_offsets(awake_minutes(config), count)
    if len(offsets) < count:
        logger.warning(f"Water window too short for {count} reminders, scheduling {len(offsets)} per day")
    liters = round(config.daily_goal_liters / len(offsets), 2)

    reminders = []
    for day in window.days():
        wake = window.at(day, config.wake_up_time)
        for index, offset in enumerate(offsets):
            fire_at = window.shift(wake, offset)
            if window.contains(fire_at):
                reminders.append(ScheduledReminder(
                    category=Category.water,
                    sub_id=f"{day.isoformat()}_{index}",
                    fire_at=fire_at,
                    payload_key="water.drink",
                    payload={"liters": liters},
                ))
    return reminders


def compute_workout(config: WorkoutConfig, window: _Window,
                    workouts: Optional[List[WorkoutOccurrence]] = None, **_) -> List[ScheduledReminder]:
    reminders = []
    for occurrence in workouts or []:
        start_at = occurrence.start_at
        if start_at.tzinfo is None:
            start_at = window.tz.localize(start_at)
        fire_at = window.shift(start_at, -config.reminder_minutes_before)
        if window.contains(fire_at):
            reminders.append(ScheduledReminder(
                category=Category.workout,
                sub_id=str(occurrence.workout_id),
                fire_at=fire_at,
                payload_key="workout.upcoming",
                payload={
                    "workoutId": str(occurrence.workout_id),
                    "startAt": start_at.isoformat(),
                    "minutesBefore": config.reminder_minutes_before,
                },
            ))
    return reminders


def compute_meals(config: MealsConfig, window: _Window, **_) -> List[ScheduledReminder]:
    reminders = []
    for day in window.days():
        for name, slot in config.slots().items():
            if not slot.enabled:
                continue
            fire_at = window.at(day, slot.time)
            if window.contains(fire_at):
                reminders.append(ScheduledReminder(
                    category=Category.meals,
                    sub_id=f"{name}_{day.isoformat()}",
                    fire_at=fire_at,
                    payload_key=f"meals.{name}",
                    payload={"meal": name},
                ))
    return reminders


def compute_sleep(config: SleepConfig, window: _Window, **_) -> List[ScheduledReminder]:
    reminders = []
    for day in window.days():
        bedtime = window.at(day, config.bedtime)
        wind_down = window.shift(bedtime, -config.reminder_minutes_before)
        if window.contains(wind_down):
            reminders.append(ScheduledReminder(
                category=Category.sleep,
                sub_id=f"pre_{day.isoformat()}",
                fire_at=wind_down,
                payload_key="sleep.wind_down",
                payload={"phase": "pre", "minutesBefore": config.reminder_minutes_before},
            ))
        if window.contains(bedtime):
            reminders.append(ScheduledReminder(
                category=Category.sleep,
                sub_id=f"bedtime_{day.isoformat()}",
                fire_at=bedtime,
                payload_key="sleep.bedtime",
                payload={"phase": "bedtime"},
            ))
    return reminders


def compute_progress(config: ProgressConfig, window: _Window, **_) -> List[ScheduledReminder]:
    reminders = []
    for day in window.days():
        if config.frequency == ProgressFrequency.weekly and day.weekday() != PROGRESS_WEEKDAY:
            continue
        fire_at = window.at(day, PROGRESS_TIME)
        if window.contains(fire_at):
            reminders.append(ScheduledReminder(
                category=Category.progress,
                sub_id=day.isoformat(),
                fire_at=fire_at,
                payload_key="progress.checkin",
                payload={"frequency": config.frequency.value},
            ))
    return reminders


COMPUTERS: Dict[Category, Callable[..., List[ScheduledReminder]]] = {
    Category.water: compute_water,
    Category.workout: compute_workout,
    Category.meals: compute_meals,
    Category.sleep: compute_sleep,
    Category.progress: compute_progress,
}


def compute_schedule(
    category,
    config: ConfigBase,
    now: datetime,
    horizon_days: float = DEFAULT_HORIZON_DAYS,
    tz="UTC",
    workouts: Optional[List[WorkoutOccurrence]] = None,
) -> List[ScheduledReminder]:
    """
    Reminders for ``category`` firing after ``now`` and within the horizon,
    ordered by fire time. Disabled categories produce nothing.
    """
    category = Category(category)
    if not config.enabled:
        return []
    if category == Category.progress:
        horizon_days = max(horizon_days, PROGRESS_MIN_WINDOW_DAYS)
    window = _Window(now, horizon_days, tz)
    reminders = COMPUTERS[category](config, window, workouts=workouts)
    return sorted(reminders, key=lambda r: (r.fire_at, r.sub_id))
