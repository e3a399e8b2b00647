import pytest
from datetime import timedelta
from reminders import presets, time_utils
from reminders.workouts import CustomTimesWorkoutPlan, StaticWorkoutPlan
from reminders.schemas import WorkoutConfig, WorkoutOccurrence
from tests.fakes import NOW

def test_preset_lookup():
    assert presets.preset_time("wake", "early") == "06:00"
    assert presets.preset_time("lunch", "late") == "14:00"
    with pytest.raises(KeyError):
        presets.preset_time("brunch", "normal")

def test_presets_are_valid_times():
    for kind, variants in presets.all_presets()["times"].items():
        for value in variants.values():
            assert time_utils.is_valid_time(value), (kind, value)
    assert presets.all_presets()["reminderMinutes"] == [15, 30, 45, 60]

def test_custom_times_plan_covers_horizon():
    plan = CustomTimesWorkoutPlan(lambda: WorkoutConfig(custom_times=["05:00", "19:00"]))
    occurrences = plan.upcoming(NOW, 1)
    assert occurrences[0].workout_id == "custom1_2025-01-06"
    assert all(o.start_at > NOW for o in occurrences)
    # Past the horizon by a day so early-morning reminders are not lost
    assert occurrences[-1].start_at.date() == (NOW + timedelta(days=2)).date()

def test_custom_times_plan_empty():
    plan = CustomTimesWorkoutPlan(lambda: WorkoutConfig())
    assert plan.upcoming(NOW, 2) == []

def test_static_plan_accepts_wire_names():
    occurrence = WorkoutOccurrence.model_validate({"workoutId": "w9", "startAt": "2025-01-06T10:00:00+00:00"})
    assert StaticWorkoutPlan([occurrence]).upcoming(NOW, 1) == [occurrence]
