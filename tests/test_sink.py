import threading
import time
import pytest
import pytz
from datetime import datetime, timedelta
from reminders.errors import SinkRejected
from reminders.sink import REMINDER_JOBSTORE, APSchedulerSink, UnavailableSink, build_scheduler

@pytest.fixture
def ap_sink():
    sink = APSchedulerSink(max_pending=3)
    sink.start()
    yield sink
    sink.shutdown()

def future(hours):
    return datetime.now(pytz.utc) + timedelta(hours=hours)

def test_schedule_and_cancel(ap_sink):
    assert ap_sink.is_available()
    ap_sink.schedule("water_a", future(1), {"payloadKey": "water.drink"})
    ap_sink.schedule("meals_b", future(2), {"payloadKey": "meals.lunch"})
    assert sorted(ap_sink.pending_ids()) == ["meals_b", "water_a"]
    assert ap_sink.count_pending("water_") == 1

    ap_sink.cancel("water_a")
    ap_sink.cancel("water_a")
    assert ap_sink.pending_ids() == ["meals_b"]

def test_jobs_live_in_reminder_store(ap_sink):
    ap_sink.schedule("sleep_x", future(1), {})
    job = ap_sink.scheduler.get_job("sleep_x", jobstore=REMINDER_JOBSTORE)
    assert job is not None
    assert job.args[0] == "sleep_x"
    assert ap_sink.scheduler.get_jobs(jobstore="default") == []

def test_cancel_by_prefix(ap_sink):
    ap_sink.schedule("water_1", future(1), {})
    ap_sink.schedule("water_2", future(2), {})
    ap_sink.schedule("workout_1", future(3), {})
    assert ap_sink.cancel_by_prefix("water_") == 2
    assert ap_sink.pending_ids() == ["workout_1"]

def test_cap_rejects_new_ids_only(ap_sink):
    for i in range(3):
        ap_sink.schedule(f"water_{i}", future(i + 1), {})
    with pytest.raises(SinkRejected):
        ap_sink.schedule("water_3", future(5), {})
    # Replacing an existing entry is not a new slot
    ap_sink.schedule("water_0", future(6), {})
    assert ap_sink.count_pending() == 3

def test_delivery_callback():
    delivered = []
    scheduler = build_scheduler()
    sink = APSchedulerSink(scheduler=scheduler, deliver=lambda rid, payload: delivered.append((rid, payload)))
    sink.start()
    try:
        fire_at = datetime.now(pytz.utc) + timedelta(seconds=0.2)
        sink.schedule("water_now", fire_at, {"payloadKey": "water.drink"})
        for _ in range(50):
            if delivered:
                break
            time.sleep(0.05)
    finally:
        sink.shutdown()
    assert delivered == [("water_now", {"payloadKey": "water.drink"})]

def test_stopped_scheduler_is_unavailable():
    assert not APSchedulerSink().is_available()

def test_unavailable_sink():
    sink = UnavailableSink()
    assert not sink.is_available()
    assert sink.cancel_by_prefix("water_") == 0
    assert sink.count_pending() == 0
    with pytest.raises(SinkRejected):
        sink.schedule("water_1", future(1), {})

def test_cap_holds_under_concurrent_schedules():
    sink = APSchedulerSink(max_pending=10)
    sink.start()
    try:
        def worker(n):
            for i in range(10):
                try:
                    sink.schedule(f"water_{n}_{i}", future(i + 1), {})
                except SinkRejected:
                    pass

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sink.count_pending() == 10
    finally:
        sink.shutdown()
