import pytest
from reminders import validator
from reminders.enums import Category
from reminders.errors import InvalidFormat, OutOfRange
from reminders.schemas import MealsConfig, MealSlot, SleepConfig, WaterConfig, WorkoutConfig

def test_wake_after_sleep_is_soft_conflict():
    config = WaterConfig(wake_up_time="09:00", sleep_time="08:00")
    conflicts = validator.validate(Category.water, config)
    assert len(conflicts) == 1
    assert conflicts[0].field == "sleepTime"
    assert conflicts[0].kind == "schedule_conflict"

def test_equal_wake_and_sleep_conflicts():
    config = WaterConfig(wake_up_time="08:00", sleep_time="08:00")
    assert validator.validate(Category.water, config)

@pytest.mark.parametrize("wake", ["00:00", "07:00", "23:59"])
def test_midnight_sleep_never_conflicts(wake):
    config = WaterConfig(wake_up_time=wake, sleep_time="00:00")
    assert validator.validate(Category.water, config) == []

def test_untouched_times_are_not_rechecked():
    config = WaterConfig(wake_up_time="09:00", sleep_time="08:00", daily_goal_liters=2)
    assert validator.validate(Category.water, config, touched={"daily_goal_liters"}) == []

@pytest.mark.parametrize("goal", [0.5, 10.5, -1])
def test_water_goal_range(goal):
    with pytest.raises(OutOfRange) as exc:
        validator.validate(Category.water, WaterConfig(daily_goal_liters=goal))
    assert exc.value.field == "dailyGoalLiters"
    assert exc.value.to_dict()["min"] == 1
    assert exc.value.to_dict()["max"] == 10

def test_water_goal_bounds_inclusive():
    assert validator.validate(Category.water, WaterConfig(daily_goal_liters=1)) == []
    assert validator.validate(Category.water, WaterConfig(daily_goal_liters=10)) == []

def test_bad_wake_time_is_hard_error():
    with pytest.raises(InvalidFormat) as exc:
        validator.validate(Category.water, WaterConfig(wake_up_time="7am"), touched={"wake_up_time"})
    assert exc.value.field == "wakeUpTime"
    assert exc.value.category == "water"

@pytest.mark.parametrize("minutes", [4, 121])
def test_workout_minutes_range(minutes):
    with pytest.raises(OutOfRange):
        validator.validate(Category.workout, WorkoutConfig(reminder_minutes_before=minutes))

def test_workout_custom_times_checked():
    config = WorkoutConfig(custom_times=["07:00", "25:00"])
    with pytest.raises(InvalidFormat) as exc:
        validator.validate(Category.workout, config)
    assert exc.value.field == "customTimes[1]"

@pytest.mark.parametrize("minutes", [4, 61])
def test_sleep_minutes_range(minutes):
    with pytest.raises(OutOfRange):
        validator.validate(Category.sleep, SleepConfig(reminder_minutes_before=minutes))

def test_disabled_meal_slot_not_validated():
    config = MealsConfig(lunch=MealSlot(enabled=False, time="not a time"))
    assert validator.validate(Category.meals, config) == []

def test_enabled_meal_slot_validated():
    config = MealsConfig(dinner=MealSlot(time="19:75"))
    with pytest.raises(InvalidFormat) as exc:
        validator.validate(Category.meals, config, touched={"dinner"})
    assert exc.value.field == "dinner.time"

@pytest.mark.parametrize("goal", [float("nan"), float("inf"), float("-inf")])
def test_water_goal_must_be_finite(goal):
    with pytest.raises(OutOfRange) as exc:
        validator.validate(Category.water, WaterConfig(daily_goal_liters=goal))
    assert exc.value.field == "dailyGoalLiters"
