import threading
import time
import pytest
from reminders.enums import Category, RescheduleState
from reminders.errors import PartialScheduleFailure, SinkUnavailable
from reminders.rescheduler import Rescheduler
from reminders.reporter import ScheduledCountReporter
from reminders.store import MemoryPreferencesStorage, PreferencesStore
from reminders.workouts import StaticWorkoutPlan
from reminders.schemas import WorkoutOccurrence
from datetime import timedelta
from tests.fakes import NOW, FakeSink

def make_rescheduler(sink, store, **kwargs):
    return Rescheduler(sink, store.get_config, horizon_days=1, tz="UTC", clock=lambda: NOW, **kwargs)

def test_reschedule_replaces_category_entries(sink, store):
    rescheduler = make_rescheduler(sink, store)
    outcome = rescheduler.reschedule("water")
    assert outcome.accepted == outcome.planned == 16
    assert outcome.error is None
    assert sink.calls[0] == ("cancel_by_prefix", "water_")

    store.update_config("water", {"dailyGoalLiters": 1})
    outcome = rescheduler.reschedule("water")
    assert outcome.cancelled == 16
    assert len(sink.pending_ids("water_")) == 4

def test_reschedule_leaves_other_categories(sink, store):
    rescheduler = make_rescheduler(sink, store)
    rescheduler.resync_all()
    meals_before = sink.pending_ids("meals_")
    rescheduler.reschedule("water")
    assert sink.pending_ids("meals_") == meals_before

def test_same_patch_twice_is_idempotent(sink, store):
    rescheduler = make_rescheduler(sink, store)
    store.update_config("water", {"dailyGoalLiters": 3})
    rescheduler.reschedule("water")
    first = dict(sink.pending)
    store.update_config("water", {"dailyGoalLiters": 3})
    rescheduler.reschedule("water")
    assert sink.pending == first

def test_toggle_off_on_restores_same_instants(sink, store):
    rescheduler = make_rescheduler(sink, store)
    rescheduler.reschedule("meals")
    before = sink.fire_times("meals_")

    store.toggle_category("meals")
    outcome = rescheduler.reschedule("meals")
    assert outcome.enabled is False
    assert sink.pending_ids("meals_") == []

    store.toggle_category("meals")
    rescheduler.reschedule("meals")
    assert sink.fire_times("meals_") == before

def test_rejection_leaves_earliest_scheduled_and_degraded(store):
    sink = FakeSink(cap=5)
    store.update_config("water", {"dailyGoalLiters": 3, "wakeUpTime": "06:30", "sleepTime": "22:00"})
    rescheduler = make_rescheduler(sink, store)
    planned = rescheduler.compute("water")

    outcome = rescheduler.reschedule("water")
    assert outcome.planned == 12
    assert outcome.accepted == 5
    assert outcome.rejected == 7
    assert isinstance(outcome.error, PartialScheduleFailure)
    assert outcome.error.to_dict()["accepted"] == 5
    assert rescheduler.is_degraded("water")
    assert rescheduler.degraded_categories() == [Category.water]

    assert sorted(sink.pending_ids()) == sorted(r.reminder_id for r in planned[:5])
    assert ScheduledCountReporter(sink).get_scheduled_count("water") == 5

    with pytest.raises(PartialScheduleFailure):
        outcome.raise_for_status()

def test_recovery_clears_degraded_flag(store):
    sink = FakeSink(cap=5)
    rescheduler = make_rescheduler(sink, store)
    rescheduler.reschedule("water")
    assert rescheduler.is_degraded("water")
    sink.cap = None
    assert rescheduler.reschedule("water").error is None
    assert not rescheduler.is_degraded("water")

def test_unavailable_sink_skips(store):
    sink = FakeSink(available=False)
    rescheduler = make_rescheduler(sink, store)
    outcome = rescheduler.reschedule("water")
    assert outcome.skipped
    assert isinstance(outcome.error, SinkUnavailable)
    assert not outcome.degraded
    assert sink.calls == []

def test_sink_crash_is_reported(store):
    class CrashingSink(FakeSink):
        def cancel_by_prefix(self, prefix):
            raise RuntimeError("boom")

    rescheduler = make_rescheduler(CrashingSink(), store)
    outcome = rescheduler.reschedule("meals")
    assert outcome.degraded
    assert "boom" in outcome.error.message
    assert rescheduler.state("meals") == RescheduleState.idle

def test_cancel_only_touches_category(sink, store):
    rescheduler = make_rescheduler(sink, store)
    rescheduler.resync_all()
    outcome = rescheduler.cancel("water")
    assert outcome.cancelled == 16
    assert sink.pending_ids("water_") == []
    assert sink.pending_ids("meals_")

    rescheduler.cancel_all()
    assert sink.pending_ids() == []

def test_workout_plan_feeds_schedule(sink, store):
    plan = StaticWorkoutPlan([WorkoutOccurrence(workout_id="legday", start_at=NOW + timedelta(hours=4))])
    rescheduler = make_rescheduler(sink, store, workout_plan=plan)
    rescheduler.reschedule("workout")
    assert sink.pending_ids("workout_") == ["workout_legday"]

# ===== CONCURRENCY =====
class SlowSink(FakeSink):
    """Records how many schedule calls overlap per category."""

    def __init__(self):
        super().__init__()
        self.active = {}
        self.max_active = {}

    def schedule(self, reminder_id, fire_at, payload):
        category = reminder_id.split("_", 1)[0]
        with self.lock:
            self.active[category] = self.active.get(category, 0) + 1
            self.max_active[category] = max(self.max_active.get(category, 0), self.active[category])
        time.sleep(0.001)
        with self.lock:
            self.active[category] -= 1
        super().schedule(reminder_id, fire_at, payload)

def test_same_category_runs_are_serialized(store):
    sink = SlowSink()
    rescheduler = make_rescheduler(sink, store)
    threads = [threading.Thread(target=rescheduler.reschedule, args=("water",)) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sink.max_active["water"] == 1
    assert len(sink.pending_ids("water_")) == 16

def test_latest_config_wins(store):
    sink = SlowSink()
    rescheduler = make_rescheduler(sink, store)
    worker = threading.Thread(target=rescheduler.reschedule, args=("water",))
    worker.start()
    store.update_config("water", {"dailyGoalLiters": 1})
    follow_up = threading.Thread(target=rescheduler.reschedule, args=("water",))
    follow_up.start()
    worker.join()
    follow_up.join()
    assert len(sink.pending_ids("water_")) == 4

def test_disable_during_submission_ends_empty(store):
    sink = SlowSink()
    rescheduler = make_rescheduler(sink, store)
    worker = threading.Thread(target=rescheduler.reschedule, args=("water",))
    worker.start()
    store.toggle_category("water")
    rescheduler.reschedule("water")
    worker.join()
    assert sink.pending_ids("water_") == []

def test_sink_crash_mid_submission_keeps_counts(store):
    class FlakySink(FakeSink):
        def schedule(self, reminder_id, fire_at, payload):
            if len(self.pending) == 2:
                raise RuntimeError("connection lost")
            super().schedule(reminder_id, fire_at, payload)

    sink = FlakySink()
    rescheduler = make_rescheduler(sink, store)
    outcome = rescheduler.reschedule("water")
    assert outcome.planned == 16
    assert outcome.accepted == 2
    assert outcome.degraded
    assert "connection lost" in outcome.error.message
    assert len(sink.pending_ids("water_")) == 2
