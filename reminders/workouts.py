"""
Workout-plan collaborators.

The schedule computer never knows when workouts happen; it is handed
``WorkoutOccurrence`` items by one of these providers.
"""
from datetime import datetime, timedelta
from typing import Callable, Iterable, List

import pytz

from .schemas import WorkoutConfig, WorkoutOccurrence
from . import time_utils


class WorkoutPlanProvider:
    def upcoming(self, now: datetime, horizon_days: float) -> List[WorkoutOccurrence]:
        raise NotImplementedError


class StaticWorkoutPlan(WorkoutPlanProvider):
    """Fixed occurrences, e.g. pushed from a generated weekly plan."""

    def __init__(self, occurrences: Iterable[WorkoutOccurrence] = ()):
        self.occurrences = list(occurrences)

    def upcoming(self, now, horizon_days):
        return list(self.occurrences)


class CustomTimesWorkoutPlan(WorkoutPlanProvider):
    """One workout per day at each of the user's custom times."""

    def __init__(self, get_config: Callable[[], WorkoutConfig], tz="UTC"):
        self.get_config = get_config
        self.tz = pytz.timezone(tz) if isinstance(tz, str) else tz

    def upcoming(self, now, horizon_days):
        cfg = self.get_config()
        if not cfg.custom_times:
            return []
        if now.tzinfo is None:
            now = self.tz.localize(now)
        end = now + timedelta(days=horizon_days)
        day = now.astimezone(self.tz).date()
        # Reminders fire before the start, so look one day past the horizon
        last = end.astimezone(self.tz).date() + timedelta(days=1)

        occurrences = []
        while day <= last:
            for index, value in enumerate(cfg.custom_times):
                start_at = time_utils.at_local(day, value, self.tz)
                if start_at > now:
                    occurrences.append(WorkoutOccurrence(
                        workout_id=f"custom{index}_{day.isoformat()}",
                        start_at=start_at,
                    ))
            day += timedelta(days=1)
        return occurrences
